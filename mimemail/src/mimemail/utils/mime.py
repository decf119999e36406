"""MIME helpers: type sniffing, quoted-printable, dates and header parameters.

What:
  Provide the small codecs the data model and the renderer lean on: guess a
  ``Content-Type`` from payload bytes, quoted-printable encode/decode with the
  flag set used by attachments, format RFC 2822 dates, and parse/rebuild
  ``value; name=param`` header values such as ``Content-Disposition``.

Why:
  These are collaborators of the core rather than part of it. Keeping them in
  one module gives the core a narrow, testable surface and lets callers swap
  the sniffer for a richer one through :class:`MimeSniffer`.

How:
  - Sniffing checks a table of magic signatures, then falls back to
    ``text/plain; charset=utf-8`` when the payload decodes as UTF-8 and to
    ``application/octet-stream`` otherwise.
  - Quoted-printable delegates to :mod:`binascii` and applies the
    :class:`QuotedPrintableFlags` post-processing (line endings, lone period).
  - :class:`HeaderValue` splits on ``;`` outside of quoted strings and quotes
    parameter values containing RFC 2045 ``tspecials`` on output.

Interfaces:
  :class:`MimeSniffer`, :func:`detect_mime_type`, :class:`QuotedPrintableFlags`,
  :func:`quoted_printable_encode`, :func:`quoted_printable_decode`,
  :func:`format_email_date`, :class:`HeaderValue`.

Invariants & Safety:
  - Sniffing reads at most the first few hundred bytes plus a UTF-8 decode
    attempt; it never raises.
  - Header parameter names compare case-insensitively; the first spelling is
    kept when a parameter is overwritten.
"""
from __future__ import annotations

import binascii
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import List, Optional, Protocol, Tuple, Union


DEFAULT_TEXT_TYPE = "text/plain; charset=utf-8"
DEFAULT_BINARY_TYPE = "application/octet-stream"

# Ordered: longer/more specific signatures first.
_SIGNATURES: Tuple[Tuple[bytes, str], ...] = (
    (b"%PDF-", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "application/msword"),
    (b"MZ", "application/x-msdownload"),
    (b"BM", "image/bmp"),
    (b"OggS", "audio/ogg"),
    (b"ID3", "audio/mpeg"),
    (b"%!PS", "application/postscript"),
)


class MimeSniffer(Protocol):
    """Anything able to guess a MIME type from raw bytes."""

    def __call__(self, data: bytes) -> str:
        ...


def detect_mime_type(data: bytes) -> str:
    """Guess the MIME type of ``data``.

    What:
      Returns a ``Content-Type`` value suitable for an attachment whose caller
      did not provide one.

    Why:
      Callers attaching generated content rarely know the exact type; a best
      effort guess beats a missing header, and explicit types always win.

    How:
      Check binary signatures first (RIFF/WEBP and ``ftyp`` containers need an
      offset check), then HTML/XML markers, then whether the bytes are valid
      UTF-8 text.

    Args:
      data: Payload bytes.

    Returns:
      MIME type string, possibly with a ``charset`` parameter.
    """

    if not data:
        return DEFAULT_TEXT_TYPE
    for magic, mime_type in _SIGNATURES:
        if data.startswith(magic):
            return mime_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[4:8] == b"ftyp":
        return "video/mp4"
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return DEFAULT_BINARY_TYPE
    head = text.lstrip()[:256].lower()
    if head.startswith("<!doctype html") or head.startswith("<html"):
        return "text/html; charset=utf-8"
    if head.startswith("<?xml"):
        return "text/xml; charset=utf-8"
    if any(ord(ch) < 32 and ch not in "\t\r\n\f" for ch in text[:1024]):
        return DEFAULT_BINARY_TYPE
    return DEFAULT_TEXT_TYPE


class QuotedPrintableFlags(enum.IntFlag):
    """Options accepted by :func:`quoted_printable_encode`."""

    NONE = 0
    BINARY = 1
    LF_ONLY = 2
    NO_LONE_PERIOD = 4


DEFAULT_QP_FLAGS = QuotedPrintableFlags.LF_ONLY | QuotedPrintableFlags.NO_LONE_PERIOD


def quoted_printable_encode(data: bytes, flags: int = DEFAULT_QP_FLAGS) -> bytes:
    """Encode ``data`` as quoted-printable.

    What:
      Produce a 7-bit safe rendition of ``data`` with lines of at most 76
      characters.

    How:
      :func:`binascii.b2a_qp` does the encoding. ``BINARY`` encodes CR and LF
      instead of treating them as line breaks. ``LF_ONLY`` keeps ``\\n`` line
      endings; otherwise every line break is emitted as CRLF.
      :mod:`binascii` always escapes a period alone on its line; that escape
      is undone unless ``NO_LONE_PERIOD`` is set.

    Args:
      data: Raw bytes to encode.
      flags: Combination of :class:`QuotedPrintableFlags`.

    Returns:
      Encoded bytes.
    """

    flags = QuotedPrintableFlags(flags)
    binary = bool(flags & QuotedPrintableFlags.BINARY)
    if not binary:
        data = data.replace(b"\r\n", b"\n")
    encoded = binascii.b2a_qp(data, quotetabs=False, istext=not binary, header=False)
    encoded = encoded.replace(b"\r\n", b"\n")
    if not flags & QuotedPrintableFlags.NO_LONE_PERIOD:
        lines = encoded.split(b"\n")
        encoded = b"\n".join(b"." if line == b"=2E" else line for line in lines)
    if not flags & QuotedPrintableFlags.LF_ONLY:
        encoded = encoded.replace(b"\n", b"\r\n")
    return encoded


def quoted_printable_decode(data: bytes) -> bytes:
    """Decode quoted-printable ``data`` (soft line breaks are removed)."""

    return binascii.a2b_qp(data, header=False)


def format_email_date(when: Union[datetime, int, float, None] = None) -> str:
    """Format ``when`` as an RFC 2822 date in UTC.

    Args:
      when: Aware/naive datetime (naive means UTC), epoch seconds, or ``None``
        for the current time.

    Returns:
      A string such as ``"Tue, 29 Sep 2015 16:12:15 +0000"``.
    """

    if when is None:
        moment = datetime.now(timezone.utc)
    elif isinstance(when, datetime):
        moment = when if when.tzinfo is not None else when.replace(tzinfo=timezone.utc)
    else:
        moment = datetime.fromtimestamp(when, tz=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc).replace(microsecond=0))


_TSPECIALS = set('()<>@,;:\\"/[]?= \t')


def _split_params(value: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    in_quotes = False
    escaped = False
    for ch in value:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\" and in_quotes:
            current.append(ch)
            escaped = True
        elif ch == '"':
            current.append(ch)
            in_quotes = not in_quotes
        elif ch == ";" and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        inner = value[1:-1]
        out: List[str] = []
        escaped = False
        for ch in inner:
            if escaped:
                out.append(ch)
                escaped = False
            elif ch == "\\":
                escaped = True
            else:
                out.append(ch)
        return "".join(out)
    return value


def _quote(value: str) -> str:
    if value and not any(ch in _TSPECIALS for ch in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class HeaderValue:
    """Structured view of a ``main; name=value; ...`` header value.

    Attributes:
      value: The main token (``attachment``, ``application/pdf``...).
      params: Ordered ``(name, unquoted value)`` pairs.
    """

    value: str
    params: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def parse(cls, raw: str) -> "HeaderValue":
        """Split ``raw`` on ``;`` outside quoted strings.

        Folded values (``multipart/mixed;\\n  boundary=...``) are accepted; the
        whitespace around each segment is dropped. Segments without ``=`` after
        the first one are ignored.
        """

        segments = _split_params(raw)
        main = segments[0].strip()
        params: List[Tuple[str, str]] = []
        for segment in segments[1:]:
            segment = segment.strip()
            if not segment or "=" not in segment:
                continue
            name, _, param_value = segment.partition("=")
            params.append((name.strip(), _unquote(param_value.strip())))
        return cls(value=main, params=params)

    def get_parameter(self, name: str) -> str:
        key = name.lower()
        for param_name, param_value in self.params:
            if param_name.lower() == key:
                return param_value
        return ""

    def set_parameter(self, name: str, value: str) -> None:
        """Overwrite ``name`` in place or append it when missing."""

        key = name.lower()
        for index, (param_name, _) in enumerate(self.params):
            if param_name.lower() == key:
                self.params[index] = (param_name, value)
                return
        self.params.append((name, value))

    def to_string(self) -> str:
        pieces = [self.value]
        pieces.extend(f"{name}={_quote(param_value)}" for name, param_value in self.params)
        return "; ".join(pieces)


def parse_header_value(raw: Optional[str]) -> HeaderValue:
    return HeaderValue.parse(raw or "")
