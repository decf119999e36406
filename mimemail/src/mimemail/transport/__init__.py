"""Process-backed collaborators: HTML to text conversion and mail delivery."""

from .html2text import Html2TextConverter
from .process import ProcessResult, ProcessRunner, SubprocessRunner
from .sendmail import SendmailTransport

__all__ = [
    "Html2TextConverter",
    "ProcessResult",
    "ProcessRunner",
    "SendmailTransport",
    "SubprocessRunner",
]
