"""Generate MIME boundaries and stable checksums for mimemail artifacts.

What:
  Provide minimal helpers for creating multipart boundary tokens and SHA-256
  checksums of serialized emails.

Why:
  Boundaries only need to be statistically unique against the message content,
  not secret. Keeping the generator in one place makes the alphabet, length
  and randomness source explicit and lets tests inject a seeded generator.

How:
  Draw characters from an alphanumeric alphabet using a :class:`random.Random`
  instance (non-cryptographic on purpose) and wrap ``hashlib`` with a
  ``sha256:`` prefix for checksums.

Interfaces:
  :func:`new_boundary` and :func:`checksum`.

Invariants & Safety:
  - Boundary tokens contain only ``[0-9A-Za-z]`` after the prefix so they are
    always valid ``bcharsnospace`` sequences.
  - Checksums are namespaced with ``sha256:`` so future algorithms can coexist.
"""
from __future__ import annotations

import hashlib
import random
import string
from typing import Optional


BOUNDARY_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
BOUNDARY_RANDOM_LENGTH = 20

_RNG = random.Random()


def new_boundary(prefix: str, rng: Optional[random.Random] = None) -> str:
    """Return ``prefix`` followed by 20 random alphanumeric characters.

    Args:
      prefix: Fixed leading text; the default ``=MimeMail=`` is not a valid
        quoted-printable sequence, so it cannot appear in encoded parts.
      rng: Optional generator, mostly for deterministic tests.

    Returns:
      The boundary token (without the leading ``--``).
    """

    source = rng if rng is not None else _RNG
    suffix = "".join(source.choice(BOUNDARY_ALPHABET) for _ in range(BOUNDARY_RANDOM_LENGTH))
    return f"{prefix}{suffix}"


def checksum(data: bytes) -> str:
    """Compute a namespaced SHA-256 digest for ``data``."""

    return f"sha256:{hashlib.sha256(data).hexdigest()}"
