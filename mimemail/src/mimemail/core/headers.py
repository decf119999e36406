"""Case-insensitive, insertion-ordered header storage.

What:
  :class:`HeaderMap` maps header names to string values the way RFC 2822
  treats them: ``Content-Type`` and ``content-type`` are the same field.

Why:
  Rendered output order and spelling are observable by recipients and by the
  tests, so the map must be deterministic. Lookups on the other hand must not
  depend on the caller's capitalisation.

How:
  Values live in a dict keyed by ``name.lower()``; a second dict remembers the
  first spelling seen for each key. Python dicts keep insertion order, which
  gives stable iteration without extra bookkeeping. Overwriting a value keeps
  the original spelling and position.

Invariants & Safety:
  - Names are never empty; every entry point rejects ``""`` with
    :class:`~mimemail.errors.InvalidArgument`.
  - Equality ignores the canonical spelling and compares normalised keys and
    values only.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..errors import InvalidArgument


def _key(name: str) -> str:
    if not name:
        raise InvalidArgument("header name cannot be empty")
    return name.lower()


class HeaderMap:
    """Ordered mapping of header names to values with case-insensitive keys."""

    __slots__ = ("_values", "_names")

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = {}
        self._names: Dict[str, str] = {}
        if initial:
            for name, value in initial.items():
                self.set(name, value)

    def set(self, name: str, value: str) -> None:
        """Store ``value`` under ``name``, keeping the first-seen spelling."""

        key = _key(name)
        if key not in self._names:
            self._names[key] = name
        self._values[key] = value

    def get(self, name: str) -> str:
        """Return the value of ``name`` or ``""`` when the header is absent."""

        return self._values.get(_key(name), "")

    def has(self, name: str) -> bool:
        return _key(name) in self._values

    def remove(self, name: str) -> None:
        key = _key(name)
        self._values.pop(key, None)
        self._names.pop(key, None)

    def names(self) -> List[str]:
        return [self._names[key] for key in self._values]

    def items(self) -> List[Tuple[str, str]]:
        return [(self._names[key], value) for key, value in self._values.items()]

    def copy(self) -> "HeaderMap":
        clone = HeaderMap()
        clone._values = dict(self._values)
        clone._names = dict(self._names)
        return clone

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(name) and name.lower() in self._values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"
