"""Binary tagged-field serialization (BRS) used to persist emails.

What:
  A streaming, order-preserving binary format made of named hunks. A hunk is
  either a scalar value (optionally tagged with a sub-name, used for header and
  parameter entries) or a nested block of further hunks.

Why:
  Emails are composed in one process and sent later by another. The format has
  to carry binary attachments untouched, survive the addition of new fields
  (old readers skip what they do not know), and degrade gracefully when a
  buffer is cut short.

How:
  The stream starts with ``b"BRS"`` and a version byte. Each hunk starts with a
  ``struct`` header ``<BBI`` (kind, name length, data length) followed by the
  name, a ``<H`` length-prefixed sub-name for :attr:`FieldKind.SUBFIELD`, and
  the data. :attr:`FieldKind.RECURSIVE` hunks carry no data; their children
  follow and are closed by an :attr:`FieldKind.END` hunk.

  :class:`Deserializer.deserialize` walks hunks and hands each one to a
  callback. A callback that receives a recursive field either calls
  ``deserialize`` again (with its own callback) to read the block, or ignores
  it, in which case the block is skipped.

Interfaces:
  :class:`FieldKind`, :class:`Field`, :class:`Serializer`,
  :class:`Deserializer`, :data:`BRS_VERSION`.

Invariants & Safety:
  - Field names are 1 to 255 UTF-8 bytes; sub-names up to 65535 bytes.
  - Reading never raises for truncated input; ``deserialize`` returns
    ``False`` instead and the partially read data stays with the caller.
  - Only a bad magic/version raises :class:`~mimemail.errors.BrsFormatError`.
"""
from __future__ import annotations

import contextlib
import enum
import struct
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, Optional, Union

from ..errors import BrsFormatError, InvalidArgument


BRS_MAGIC = b"BRS"
BRS_VERSION = 1

_HUNK = struct.Struct("<BBI")
_SUB_NAME = struct.Struct("<H")

Value = Union[str, bytes, bool, int]


class FieldKind(enum.IntEnum):
    FIELD = 0
    SUBFIELD = 1
    RECURSIVE = 2
    END = 3


@dataclass(frozen=True)
class Field:
    """One hunk as seen by a deserialization callback."""

    name: str
    kind: FieldKind
    sub_name: str = ""
    data: bytes = b""

    @property
    def is_block(self) -> bool:
        return self.kind == FieldKind.RECURSIVE

    @property
    def is_named_subfield(self) -> bool:
        return self.kind == FieldKind.SUBFIELD and bool(self.sub_name)

    def read_bytes(self) -> bytes:
        return self.data

    def read_string(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def read_bool(self) -> bool:
        return any(self.data)

    def read_int(self) -> int:
        return int(self.data.decode("ascii"))


def _encode_value(value: Value) -> bytes:
    # bool first: it is also an int
    if isinstance(value, bool):
        return b"\x01" if value else b"\x00"
    if isinstance(value, int):
        return str(value).encode("ascii")
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise InvalidArgument(f"unsupported BRS value type: {type(value).__name__}")


def _encode_name(name: str) -> bytes:
    encoded = name.encode("utf-8")
    if not 1 <= len(encoded) <= 255:
        raise InvalidArgument(f"BRS field name must be 1 to 255 bytes, got {name!r}")
    return encoded


class Serializer:
    """Write BRS hunks to a binary stream.

    The stream header is written on construction, so an email with no fields
    still produces a readable (empty) buffer.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._stream.write(BRS_MAGIC + bytes([BRS_VERSION]))

    def add_value(self, name: str, value: Value, sub_name: Optional[str] = None) -> None:
        """Append a scalar hunk, tagged with ``sub_name`` when given."""

        encoded_name = _encode_name(name)
        data = _encode_value(value)
        if sub_name is None:
            self._stream.write(_HUNK.pack(FieldKind.FIELD, len(encoded_name), len(data)))
            self._stream.write(encoded_name)
        else:
            encoded_sub = sub_name.encode("utf-8")
            if len(encoded_sub) > 0xFFFF:
                raise InvalidArgument("BRS sub-name too long")
            self._stream.write(_HUNK.pack(FieldKind.SUBFIELD, len(encoded_name), len(data)))
            self._stream.write(encoded_name)
            self._stream.write(_SUB_NAME.pack(len(encoded_sub)))
            self._stream.write(encoded_sub)
        self._stream.write(data)

    def add_value_if_not_empty(self, name: str, value: Value) -> None:
        if value:
            self.add_value(name, value)

    @contextlib.contextmanager
    def recursive(self, name: str) -> Iterator["Serializer"]:
        """Open a nested block; hunks written inside the ``with`` belong to it."""

        encoded_name = _encode_name(name)
        self._stream.write(_HUNK.pack(FieldKind.RECURSIVE, len(encoded_name), 0))
        self._stream.write(encoded_name)
        try:
            yield self
        finally:
            self._stream.write(_HUNK.pack(FieldKind.END, 0, 0))


ProcessHunk = Callable[["Deserializer", Field], bool]


class Deserializer:
    """Read BRS hunks from a binary stream.

    What:
      Validate the stream header and dispatch hunks to callbacks.

    Why:
      Consumers (:class:`~mimemail.core.attachment.Attachment`,
      :class:`~mimemail.core.message.Email`) own the meaning of field names;
      the reader only knows framing.

    How:
      :meth:`deserialize` loops over hunks. For a recursive hunk it marks a
      block as pending before calling the callback; a nested
      :meth:`deserialize` call claims that block and reads until its ``END``.
      Blocks left unclaimed are skipped after the callback returns.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._pending_block = False
        self._truncated = False
        header = stream.read(len(BRS_MAGIC) + 1)
        if len(header) != len(BRS_MAGIC) + 1 or header[: len(BRS_MAGIC)] != BRS_MAGIC:
            raise BrsFormatError("buffer does not start with a BRS header")
        if header[-1] != BRS_VERSION:
            raise BrsFormatError(f"unsupported BRS version {header[-1]}")

    @property
    def truncated(self) -> bool:
        return self._truncated

    def _read_exact(self, size: int) -> Optional[bytes]:
        data = self._stream.read(size) if size else b""
        if len(data) != size:
            self._truncated = True
            return None
        return data

    def deserialize(self, process_hunk: ProcessHunk) -> bool:
        """Feed hunks to ``process_hunk`` until the end of the current level.

        Args:
          process_hunk: Callback receiving ``(deserializer, field)``; returning
            ``False`` stops the walk.

        Returns:
          ``True`` when the level ended normally (``END`` for a block, end of
          stream at the top level); ``False`` when the stream was truncated or
          the callback asked to stop.
        """

        in_block = self._pending_block
        self._pending_block = False
        while True:
            header = self._stream.read(_HUNK.size)
            if not header:
                if in_block:
                    self._truncated = True
                    return False
                return not self._truncated
            if len(header) != _HUNK.size:
                self._truncated = True
                return False
            kind_value, name_length, size = _HUNK.unpack(header)
            if kind_value == FieldKind.END:
                return not self._truncated
            try:
                kind = FieldKind(kind_value)
            except ValueError:
                # framing is unknown past this point
                self._truncated = True
                return False
            raw_name = self._read_exact(name_length)
            if raw_name is None:
                return False
            sub_name = ""
            if kind == FieldKind.SUBFIELD:
                raw_length = self._read_exact(_SUB_NAME.size)
                if raw_length is None:
                    return False
                raw_sub = self._read_exact(_SUB_NAME.unpack(raw_length)[0])
                if raw_sub is None:
                    return False
                sub_name = raw_sub.decode("utf-8", errors="replace")
            data = b""
            if kind != FieldKind.RECURSIVE:
                read = self._read_exact(size)
                if read is None:
                    return False
                data = read
            field = Field(
                name=raw_name.decode("utf-8", errors="replace"),
                kind=kind,
                sub_name=sub_name,
                data=data,
            )
            if kind == FieldKind.RECURSIVE:
                self._pending_block = True
                keep_going = process_hunk(self, field)
                if self._pending_block:
                    self.skip_block()
            else:
                keep_going = process_hunk(self, field)
            if self._truncated or not keep_going:
                return False

    def skip_block(self) -> bool:
        """Consume the pending nested block without interpreting it."""

        return self.deserialize(lambda _deserializer, _field: True)
