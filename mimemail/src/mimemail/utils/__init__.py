"""Expose the public utility surface for mimemail.

What:
  Re-export the logging, identifier, address and MIME helpers that other
  packages import without knowing the underlying module layout.

Why:
  Centralising exports provides a stable facade so downstream code can perform
  ``from mimemail import utils`` imports without depending on internal
  filenames.

Interfaces:
  ``get_logger``, ``new_boundary``, ``checksum``, ``parse_address_list``,
  ``classify_field``, ``detect_mime_type``, ``quoted_printable_encode``,
  ``quoted_printable_decode``, ``format_email_date``.
"""

from .addresses import FieldType, ParsedAddress, classify_field, parse_address_list
from .ids import checksum, new_boundary
from .logging import get_logger
from .mime import (
    QuotedPrintableFlags,
    detect_mime_type,
    format_email_date,
    quoted_printable_decode,
    quoted_printable_encode,
)

__all__ = [
    "FieldType",
    "ParsedAddress",
    "QuotedPrintableFlags",
    "checksum",
    "classify_field",
    "detect_mime_type",
    "format_email_date",
    "get_logger",
    "new_boundary",
    "parse_address_list",
    "quoted_printable_decode",
    "quoted_printable_encode",
]
