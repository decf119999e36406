"""One MIME body part with an optional flat group of related parts.

What:
  :class:`Attachment` stores the headers and the (already encoded) payload of
  a single part. The body of an email is an attachment too; when it is an HTML
  document it may carry related parts such as inline images or stylesheets.

Why:
  Emails are assembled piece by piece by application code and later rendered
  or persisted. Keeping the part self-contained (headers, payload, children)
  makes both operations a plain walk over the object graph.

How:
  - Payload setters fill ``Content-Type`` (sniffed when the caller does not
    know it) and, for quoted-printable data, ``Content-Transfer-Encoding``.
  - :meth:`Attachment.add_related` stores a deep copy flagged as a
    sub-attachment, which limits nesting to exactly one level.
  - :meth:`Attachment.serialize` / :meth:`Attachment.deserialize` speak the
    BRS format from :mod:`mimemail.utils.brs`.

Interfaces:
  :class:`Attachment`.

Invariants & Safety:
  - A sub-attachment never has related parts of its own.
  - Related parts are owned by their parent; mutating the object passed to
    :meth:`Attachment.add_related` afterwards has no effect on the copy.
  - Only the basename of a filename ever reaches ``Content-Disposition``.
"""
from __future__ import annotations

import copy as _copy
from datetime import datetime
from typing import List, Optional, Tuple, Union
from urllib.parse import quote

from ..errors import InvalidArgument, OutOfRange, TooManyLevels
from ..utils.brs import Deserializer, Field, Serializer
from ..utils.logging import get_logger
from ..utils.mime import (
    DEFAULT_QP_FLAGS,
    MimeSniffer,
    detect_mime_type,
    format_email_date,
    quoted_printable_decode,
    quoted_printable_encode,
)
from .headers import HeaderMap


_LOGGER = get_logger("mimemail.attachment")

CONTENT_TYPE = "Content-Type"
CONTENT_TRANSFER_ENCODING = "Content-Transfer-Encoding"
CONTENT_DISPOSITION = "Content-Disposition"
QUOTED_PRINTABLE = "quoted-printable"


def _basename(filename: str) -> str:
    # both separators: names often come from Windows clients
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


class Attachment:
    """A MIME part: headers, payload and related sub-parts.

    Attributes:
      headers: Part headers (``Content-Type``, ``Content-Disposition``...).
      data: Payload bytes, already encoded as advertised by the headers.
      is_sub_attachment: ``True`` for parts stored under another attachment.
      related: Related sub-attachments (one level only).
    """

    def __init__(self) -> None:
        self.headers = HeaderMap()
        self.data = b""
        self.is_sub_attachment = False
        self.related: List[Attachment] = []

    # -- payload ---------------------------------------------------------

    def set_data(
        self,
        data: bytes,
        mime_type: Optional[str] = None,
        *,
        sniffer: Optional[MimeSniffer] = None,
    ) -> None:
        """Store ``data`` and set ``Content-Type``.

        Args:
          data: Payload bytes; ``str`` is accepted and encoded as UTF-8.
          mime_type: Explicit type stored verbatim; when empty the sniffer
            guesses it from ``data``.
          sniffer: Replacement for :func:`~mimemail.utils.mime.detect_mime_type`.
        """

        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = bytes(data)
        if not mime_type:
            mime_type = (sniffer or detect_mime_type)(self.data)
        self.headers.set(CONTENT_TYPE, mime_type)

    def set_quoted_printable_data(
        self,
        data: bytes,
        mime_type: Optional[str] = None,
        flags: int = DEFAULT_QP_FLAGS,
    ) -> None:
        """Quoted-printable encode ``data`` and store it.

        The type is sniffed on the raw bytes, not on the encoded ones, so an
        HTML body is still recognised as HTML.
        """

        if isinstance(data, str):
            data = data.encode("utf-8")
        if not mime_type:
            mime_type = detect_mime_type(data)
        self.set_data(quoted_printable_encode(data, flags), mime_type)
        self.headers.set(CONTENT_TRANSFER_ENCODING, QUOTED_PRINTABLE)

    def get_data(self) -> bytes:
        return self.data

    def get_decoded_data(self) -> bytes:
        """Return the payload with the transfer encoding undone."""

        if self.headers.get(CONTENT_TRANSFER_ENCODING).strip().lower() == QUOTED_PRINTABLE:
            return quoted_printable_decode(self.data)
        return self.data

    def set_content_disposition(
        self,
        filename: str,
        modification_date: Union[datetime, int, float, None] = None,
        disposition_type: str = "attachment",
    ) -> None:
        """Set ``Content-Disposition`` for a file attachment.

        What:
          Builds ``<type>; filename=<name>; modification-date="<date>"``.

        Why:
          Clients use the filename when saving the part. A path would leak the
          sender's directory layout and could be abused by a careless client,
          so only the basename is kept.

        How:
          The basename is percent-encoded with :func:`urllib.parse.quote` and
          omitted when empty. ``None`` or ``0`` as date means "now".

        Raises:
          InvalidArgument: When ``disposition_type`` is empty.
        """

        if not disposition_type:
            raise InvalidArgument("disposition type cannot be empty")
        if not modification_date:
            modification_date = None
        parts = [disposition_type]
        name = _basename(filename or "")
        if name:
            parts.append(f"filename={quote(name)}")
        parts.append(f'modification-date="{format_email_date(modification_date)}"')
        self.headers.set(CONTENT_DISPOSITION, "; ".join(parts))

    # -- headers ---------------------------------------------------------

    def add_header(self, name: str, value: str) -> None:
        self.headers.set(name, value)

    def remove_header(self, name: str) -> None:
        self.headers.remove(name)

    def has_header(self, name: str) -> bool:
        return self.headers.has(name)

    def get_header(self, name: str) -> str:
        return self.headers.get(name)

    def get_all_headers(self) -> HeaderMap:
        return self.headers

    # -- related parts ---------------------------------------------------

    def add_related(self, attachment: "Attachment") -> None:
        """Attach a related part (inline image, stylesheet...).

        Raises:
          TooManyLevels: When ``self`` is a sub-attachment or ``attachment``
            has related parts of its own.
        """

        if self.is_sub_attachment:
            raise TooManyLevels("a sub-attachment cannot have related attachments")
        if attachment.get_related_count() > 0:
            raise TooManyLevels("a related attachment cannot have related attachments itself")
        related = attachment.copy()
        related.is_sub_attachment = True
        self.related.append(related)

    def get_related_count(self) -> int:
        return len(self.related)

    def get_related(self, index: int) -> "Attachment":
        if not 0 <= index < len(self.related):
            raise OutOfRange(f"related attachment index {index} out of range")
        return self.related[index]

    # -- persistence -----------------------------------------------------

    def serialize(self, writer: Serializer) -> None:
        """Write headers, related blocks, then ``data`` to ``writer``."""

        for name, value in self.headers.items():
            writer.add_value("header", value, sub_name=name)
        for related in self.related:
            with writer.recursive("attachment"):
                related.serialize(writer)
        writer.add_value("data", self.data)

    def deserialize(self, reader: Deserializer, is_sub_attachment: bool) -> bool:
        """Read the fields of one ``attachment`` block from ``reader``.

        Unknown fields are logged and skipped. A nested block under a
        sub-attachment is dropped since it cannot be represented.

        Returns:
          ``False`` when the stream ended early; the fields read so far stay
          on ``self``.
        """

        self.is_sub_attachment = is_sub_attachment

        def process_hunk(deserializer: Deserializer, field: Field) -> bool:
            if field.name == "header" and field.is_named_subfield:
                self.headers.set(field.sub_name, field.read_string())
            elif field.name == "data":
                self.data = field.read_bytes()
            elif field.name == "attachment" and field.is_block:
                if self.is_sub_attachment:
                    _LOGGER.warning("nested_related_dropped", field=field.name)
                    return True
                related = Attachment()
                complete = related.deserialize(deserializer, True)
                self.related.append(related)
                return complete
            else:
                _LOGGER.warning("unknown_field_skipped", field=field.name, owner="attachment")
            return True

        complete = reader.deserialize(process_hunk)
        if not complete:
            _LOGGER.warning("attachment_truncated", header_count=len(self.headers))
        return complete

    # -- value semantics -------------------------------------------------

    def copy(self) -> "Attachment":
        return _copy.deepcopy(self)

    def _state(self) -> Tuple[HeaderMap, bytes, bool, List["Attachment"]]:
        return (self.headers, self.data, self.is_sub_attachment, self.related)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Attachment):
            return NotImplemented
        return self._state() == other._state()

    def __repr__(self) -> str:
        return (
            f"Attachment(content_type={self.headers.get(CONTENT_TYPE)!r}, "
            f"size={len(self.data)}, related={len(self.related)})"
        )
