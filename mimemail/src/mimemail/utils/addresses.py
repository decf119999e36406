"""RFC 2822 address parsing and header field classification.

What:
  Parse ``From``/``To``-style header values into ``(display, address)`` pairs,
  validate each addr-spec, and classify header names into the categories used
  by :meth:`mimemail.core.message.Email.add_header`.

Why:
  Headers that carry addresses end up on the ``sendmail`` command line and in
  the recipient's client. Rejecting malformed values when they are set keeps
  ``send`` from failing late with an envelope nobody can deliver.

How:
  Split lists with :func:`email.utils.getaddresses`, then check every bare
  address against a conservative addr-spec pattern (dot-atom or quoted local
  part, dotted domain with an alphabetic top-level label). Field names are
  looked up in a fixed taxonomy; anything else that is a valid ``ftext`` name
  is free text.

Interfaces:
  :class:`FieldType`, :class:`ParsedAddress`, :func:`parse_address_list`,
  :func:`bare_addresses`, :func:`classify_field`, :func:`is_valid_field_name`.

Invariants & Safety:
  - :func:`parse_address_list` never returns an entry with an empty address.
  - Blank input yields an empty list; callers decide whether zero addresses is
    acceptable.
"""
from __future__ import annotations

import enum
import re
from email.utils import getaddresses
from typing import List, NamedTuple

from ..errors import InvalidArgument


class FieldType(enum.Enum):
    """Category of a header field name with respect to address content."""

    INVALID = "invalid"
    FREE_TEXT = "free-text"
    MAILBOX = "mailbox"
    ADDRESS_LIST = "address-list"
    ADDRESS_LIST_OPT = "address-list-opt"


class ParsedAddress(NamedTuple):
    """One entry of an address list: display name and bare ``local@domain``."""

    display: str
    address: str


_ATOM = r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+"
_LOCAL = rf'(?:{_ATOM}(?:\.{_ATOM})*|"(?:[^"\\\r\n]|\\.)*")'
_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
_DOMAIN = rf"(?:{_LABEL}\.)+[A-Za-z]{{2,63}}"
_ADDR_SPEC = re.compile(rf"^{_LOCAL}@{_DOMAIN}$")

_FIELD_TYPES = {
    "from": FieldType.ADDRESS_LIST,
    "resent-from": FieldType.ADDRESS_LIST,
    "sender": FieldType.MAILBOX,
    "resent-sender": FieldType.MAILBOX,
    "to": FieldType.ADDRESS_LIST,
    "cc": FieldType.ADDRESS_LIST,
    "reply-to": FieldType.ADDRESS_LIST,
    "resent-to": FieldType.ADDRESS_LIST,
    "resent-cc": FieldType.ADDRESS_LIST,
    "bcc": FieldType.ADDRESS_LIST_OPT,
    "resent-bcc": FieldType.ADDRESS_LIST_OPT,
}


def is_valid_addr_spec(address: str) -> bool:
    return bool(_ADDR_SPEC.match(address))


def parse_address_list(value: str) -> List[ParsedAddress]:
    """Parse a comma separated address list.

    What:
      Converts ``"Alice <a@example.com>, b@example.org"`` into
      ``[ParsedAddress("Alice", "a@example.com"), ParsedAddress("", "b@example.org")]``.

    Why:
      Both header validation and envelope extraction need the bare address
      independent of the display name.

    How:
      Delegates tokenisation to :func:`email.utils.getaddresses`, drops empty
      slots (``"a@b.com,"``) and validates each remaining address.

    Args:
      value: Raw header value.

    Returns:
      Parsed entries in the order they appear; empty for blank input.

    Raises:
      InvalidArgument: If any entry is not a valid addr-spec.
    """

    if not value or not value.strip():
        return []
    result: List[ParsedAddress] = []
    for display, address in getaddresses([value]):
        display = display.strip()
        address = address.strip()
        if not display and not address:
            continue
        if not is_valid_addr_spec(address):
            raise InvalidArgument(f"invalid email address in {value!r}")
        result.append(ParsedAddress(display, address))
    if not result:
        # getaddresses() reports unparsable input as a single empty pair
        raise InvalidArgument(f"no valid email address in {value!r}")
    return result


def bare_addresses(value: str) -> List[str]:
    """Return only the ``local@domain`` part of each entry of ``value``."""

    return [entry.address for entry in parse_address_list(value)]


def is_valid_field_name(name: str) -> bool:
    """Return whether ``name`` is a non-empty sequence of RFC 2822 ``ftext``."""

    if not name:
        return False
    return all(33 <= ord(ch) <= 126 and ch != ":" for ch in name)


def classify_field(name: str) -> FieldType:
    """Classify a header field name.

    Args:
      name: Header field name, any case.

    Returns:
      :attr:`FieldType.INVALID` for empty or malformed names, the address
      category for known address-bearing fields, :attr:`FieldType.FREE_TEXT`
      otherwise.
    """

    if not is_valid_field_name(name):
        return FieldType.INVALID
    return _FIELD_TYPES.get(name.lower(), FieldType.FREE_TEXT)
