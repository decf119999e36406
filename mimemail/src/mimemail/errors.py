"""Exception taxonomy shared by every mimemail subsystem.

What:
  Declare the error types raised by the data model, the renderer, the binary
  codec, and the process-backed transport adapters.

Why:
  Callers need to tell apart a caller mistake (bad header name, bad address,
  invalid index) from an environment problem (``sendmail`` missing). A small
  hierarchy rooted at :class:`MimeMailError` lets them catch the whole family or
  a single condition.

How:
  Each error derives from :class:`MimeMailError`; the argument and index errors
  also derive from the matching builtin (:class:`ValueError`,
  :class:`IndexError`) so generic handlers keep working.

Interfaces:
  :class:`MimeMailError`, :class:`InvalidArgument`, :class:`OutOfRange`,
  :class:`TooManyLevels`, :class:`MissingParameter`, :class:`StartFailure`,
  :class:`TransportFailure`, :class:`BrsFormatError`.

Invariants & Safety:
  - Model mutation errors are raised at the offending call, never deferred.
  - Deserialization never raises for unknown fields or truncated streams; only
    a malformed stream header raises :class:`BrsFormatError`.
"""
from __future__ import annotations


class MimeMailError(Exception):
    """Base class for every error raised by mimemail."""


class InvalidArgument(MimeMailError, ValueError):
    """Raised for empty names, malformed addresses, or unknown enum values."""


class OutOfRange(MimeMailError, IndexError):
    """Raised when an attachment or related attachment index is invalid."""


class TooManyLevels(MimeMailError):
    """Raised when related attachments would nest deeper than one level.

    What:
      Signals a violation of the one-level nesting rule for related
      sub-attachments.

    Why:
      Rendering only knows how to emit a body with a flat group of related
      parts (images, CSS). Deeper trees cannot be represented.
    """


class MissingParameter(MimeMailError):
    """Raised when ``send``/``render`` preconditions are not met."""


class StartFailure(MimeMailError):
    """Raised by process runners when an external command cannot be launched."""


class TransportFailure(MimeMailError):
    """Raised when an external command ran but did not complete successfully.

    Attributes:
      exit_code: Exit status reported by the process, ``None`` on timeout.
    """

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class BrsFormatError(MimeMailError, ValueError):
    """Raised when a serialized buffer does not start with a valid BRS header."""


__all__ = [
    "MimeMailError",
    "InvalidArgument",
    "OutOfRange",
    "TooManyLevels",
    "MissingParameter",
    "StartFailure",
    "TransportFailure",
    "BrsFormatError",
]
