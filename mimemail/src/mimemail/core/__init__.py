"""Core data model and the render/send pipeline."""

from .attachment import Attachment
from .headers import HeaderMap
from .message import Email, Priority
from .render import RenderedMessage, copy_filename_to_content_type, render
from .sender import send_email

__all__ = [
    "Attachment",
    "Email",
    "HeaderMap",
    "Priority",
    "RenderedMessage",
    "copy_filename_to_content_type",
    "render",
    "send_email",
]
