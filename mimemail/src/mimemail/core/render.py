"""Render an :class:`~mimemail.core.message.Email` into an RFC 2822 stream.

What:
  Turn the in-memory message into the exact bytes handed to the mail
  transport, plus the envelope (bare sender and recipient addresses).

Why:
  Rendering is deterministic apart from the boundary token and the default
  ``Date``; keeping it free of process calls lets tests assert on the bytes
  and lets the CLI preview a message without sending it.

How:
  1. A lone body without a plain-text alternative is emitted as is
     ("body-only"), with its transfer encoding and type lifted to the top.
  2. Otherwise a ``multipart/mixed`` wrapper is generated. When a plain-text
     alternative exists, the text and the body share a
     ``multipart/alternative`` part (``<boundary>.msg``). A part carrying
     related sub-attachments is wrapped in a ``multipart/related`` group
     (``<boundary>.rel``).
  3. Every other attachment is emitted after
     :func:`copy_filename_to_content_type` syncs its filename parameters.
  4. The stream ends with a line holding a single period.

Interfaces:
  :class:`RenderedMessage`, :func:`render`,
  :func:`copy_filename_to_content_type`, :func:`check_preconditions`.

Invariants & Safety:
  - The email is never mutated; header edits happen on copies.
  - The outer boundary opens each top-level part once and closes the
    message once, so it appears on ``attachment_count + 1`` lines whether or
    not the body shares an alternative part with the plain text.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from ..config.loader import get_runtime_config
from ..config.schema import RuntimeConfig
from ..errors import InvalidArgument, MissingParameter
from ..utils.addresses import bare_addresses
from ..utils.ids import new_boundary
from ..utils.logging import get_logger
from ..utils.mime import (
    DEFAULT_QP_FLAGS,
    format_email_date,
    parse_header_value,
    quoted_printable_encode,
)
from .attachment import (
    CONTENT_DISPOSITION,
    CONTENT_TRANSFER_ENCODING,
    CONTENT_TYPE,
    QUOTED_PRINTABLE,
    Attachment,
)
from .headers import HeaderMap
from .message import Email


_LOGGER = get_logger("mimemail.render")


@dataclass(frozen=True)
class RenderedMessage:
    """Output of :func:`render`.

    Attributes:
      sender: Bare envelope sender (``local@domain``).
      recipients: Bare envelope recipients, in ``To`` order.
      payload: Complete message bytes including the final ``.`` line.
      boundary: Outer multipart boundary, ``""`` in body-only mode.
    """

    sender: str
    recipients: List[str] = field(default_factory=list)
    payload: bytes = b""
    boundary: str = ""


def check_preconditions(email: Email) -> None:
    """Raise :class:`MissingParameter` unless ``email`` can be rendered."""

    if not email.has_header("From"):
        raise MissingParameter("the From header is required to send an email")
    if not email.has_header("To"):
        raise MissingParameter("the To header is required to send an email")
    if email.get_attachment_count() == 0:
        raise MissingParameter("an email requires at least one attachment (its body)")


def copy_filename_to_content_type(headers: HeaderMap) -> HeaderMap:
    """Return a copy of ``headers`` with the filename in both places.

    What:
      Mirrors ``Content-Disposition; filename=`` into ``Content-Type; name=``
      or, when only the latter exists, the other way around.

    Why:
      Older clients only look at the ``name`` parameter of ``Content-Type``
      while newer ones use the disposition; keeping both avoids "noname"
      attachments.

    How:
      Both headers must be present. A disposition ``filename`` always wins
      and overwrites any ``name``; otherwise a ``name`` is copied into the
      disposition.
    """

    result = headers.copy()
    if not (result.has(CONTENT_DISPOSITION) and result.has(CONTENT_TYPE)):
        return result
    disposition = parse_header_value(result.get(CONTENT_DISPOSITION))
    content_type = parse_header_value(result.get(CONTENT_TYPE))
    filename = disposition.get_parameter("filename")
    if filename:
        content_type.set_parameter("name", filename)
        result.set(CONTENT_TYPE, content_type.to_string())
    else:
        name = content_type.get_parameter("name")
        if name:
            disposition.set_parameter("filename", name)
            result.set(CONTENT_DISPOSITION, disposition.to_string())
    return result


def _header_lines(headers: HeaderMap) -> bytes:
    return "".join(f"{name}: {value}\n" for name, value in headers.items()).encode("utf-8")


def _render_part(attachment: Attachment, boundary: str, sync_filename: bool) -> bytes:
    """Headers, blank line and payload of one part, without a final newline.

    A part with related sub-attachments becomes a ``multipart/related``
    group whose first member is the part itself.
    """

    headers = copy_filename_to_content_type(attachment.headers) if sync_filename else attachment.headers
    if not attachment.related:
        return _header_lines(headers) + b"\n" + attachment.data
    related_boundary = f"{boundary}.rel"
    out = [
        f'{CONTENT_TYPE}: multipart/related;\n  boundary="{related_boundary}"\n\n'.encode("utf-8"),
        f"--{related_boundary}\n".encode("utf-8"),
        _header_lines(headers),
        b"\n",
        attachment.data,
        b"\n",
    ]
    for related in attachment.related:
        out.append(f"--{related_boundary}\n".encode("utf-8"))
        out.append(_header_lines(copy_filename_to_content_type(related.headers)))
        out.append(b"\n")
        out.append(related.data)
        out.append(b"\n")
    out.append(f"--{related_boundary}--".encode("utf-8"))
    return b"".join(out)


def _envelope(email: Email) -> tuple[str, List[str]]:
    try:
        senders = bare_addresses(email.get_header("From"))
        recipients = bare_addresses(email.get_header("To"))
    except InvalidArgument as exc:
        raise InvalidArgument(f"cannot extract the envelope addresses: {exc}") from exc
    if not senders or not recipients:
        raise InvalidArgument("cannot extract the envelope addresses")
    return senders[0], recipients


def render(
    email: Email,
    *,
    plain_text: str = "",
    now: Union[datetime, int, float, None] = None,
    config: Optional[RuntimeConfig] = None,
    rng: Optional[random.Random] = None,
) -> RenderedMessage:
    """Render ``email`` into transport-ready bytes.

    Args:
      email: Message to render; left untouched.
      plain_text: Plain-text alternative of an HTML body, ``""`` for none.
      now: Time used for a missing ``Date`` header; defaults to the clock.
      config: Runtime configuration; defaults to the cached one.
      rng: Generator for the boundary token, for reproducible output.

    Returns:
      The payload and its envelope.

    Raises:
      MissingParameter: When ``From``, ``To`` or the body is missing.
      InvalidArgument: When the envelope addresses cannot be parsed.
    """

    check_preconditions(email)
    settings = (config or get_runtime_config()).render
    sender, recipients = _envelope(email)

    body = email.get_attachment(0)
    count = email.get_attachment_count()
    body_only = count == 1 and not plain_text and not body.related

    headers = email.headers.copy()
    boundary = ""
    if body_only:
        if body.get_header(CONTENT_TRANSFER_ENCODING).strip().lower() == QUOTED_PRINTABLE:
            headers.set(CONTENT_TRANSFER_ENCODING, QUOTED_PRINTABLE)
        if not headers.has(CONTENT_TYPE) and body.has_header(CONTENT_TYPE):
            headers.set(CONTENT_TYPE, body.get_header(CONTENT_TYPE))
    else:
        boundary = new_boundary(settings.boundary_prefix, rng)
        headers.set(CONTENT_TYPE, f'multipart/mixed;\n  boundary="{boundary}"')
        headers.set("MIME-Version", "1.0")

    if not headers.has("Date"):
        headers.set("Date", format_email_date(now))
    if not headers.has("Content-Language"):
        headers.set("Content-Language", settings.default_language)

    out: List[bytes] = [_header_lines(headers)]
    if email.branding:
        out.append(f"X-Generated-By: {settings.generator}\nX-Mailer: {settings.generator}\n".encode("utf-8"))
    out.append(b"\n")

    if body_only:
        out.append(body.data)
        out.append(b"\n")
    else:
        out.append(settings.preamble.encode("utf-8"))
        out.append(b"\n")
        start = 0
        if plain_text:
            alternative = f"{boundary}.msg"
            encoded = quoted_printable_encode(plain_text.encode("utf-8"), DEFAULT_QP_FLAGS)
            out.append(
                (
                    f"--{boundary}\n"
                    f'{CONTENT_TYPE}: multipart/alternative;\n  boundary="{alternative}"\n'
                    "\n"
                    f"--{alternative}\n"
                    f'{CONTENT_TYPE}: text/plain; charset="utf-8"\n'
                    f"{CONTENT_TRANSFER_ENCODING}: {QUOTED_PRINTABLE}\n"
                    "Content-Description: Mail message body\n"
                    "\n"
                ).encode("utf-8")
            )
            out.append(encoded)
            out.append(f"\n--{alternative}\n".encode("utf-8"))
            out.append(_render_part(body, boundary, sync_filename=False))
            out.append(f"\n--{alternative}--\n\n".encode("utf-8"))
            start = 1
        for index in range(start, count):
            out.append(f"--{boundary}\n".encode("utf-8"))
            out.append(_render_part(email.get_attachment(index), boundary, sync_filename=True))
            out.append(b"\n")
        out.append(f"--{boundary}--\n".encode("utf-8"))

    out.append(b"\n.\n")
    payload = b"".join(out)
    _LOGGER.debug(
        "email_rendered",
        body_only=body_only,
        attachment_count=count,
        alternative=bool(plain_text),
        size=len(payload),
    )
    return RenderedMessage(sender=sender, recipients=recipients, payload=payload, boundary=boundary)
