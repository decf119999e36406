"""
Module: mimemail.__init__

What:
  Aggregate the public API for building, persisting, rendering and sending
  multipart MIME emails.

Why:
  Applications should be able to write ``from mimemail import Email,
  Attachment`` without knowing the internal layout, which stays free to
  evolve.

How:
  Re-export the data model, the render/send entry points and the error
  taxonomy, and declare the subpackages in ``__all__``.

Interfaces:
  - core: header map, attachment, email, renderer, sender.
  - config: runtime configuration schema and loader.
  - transport: process runner, ``html2text`` and ``sendmail`` adapters.
  - utils: logging, addresses, MIME helpers, BRS codec.
"""

from .core import (
    Attachment,
    Email,
    HeaderMap,
    Priority,
    RenderedMessage,
    copy_filename_to_content_type,
    render,
    send_email,
)
from .errors import (
    BrsFormatError,
    InvalidArgument,
    MimeMailError,
    MissingParameter,
    OutOfRange,
    StartFailure,
    TooManyLevels,
    TransportFailure,
)

__version__ = "1.1.0"

__all__ = [
    "config",
    "core",
    "transport",
    "utils",
    "Attachment",
    "Email",
    "HeaderMap",
    "Priority",
    "RenderedMessage",
    "copy_filename_to_content_type",
    "render",
    "send_email",
    "BrsFormatError",
    "InvalidArgument",
    "MimeMailError",
    "MissingParameter",
    "OutOfRange",
    "StartFailure",
    "TooManyLevels",
    "TransportFailure",
]
