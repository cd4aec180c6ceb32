"""Content-addressed course identifiers."""

from __future__ import annotations

import hashlib

SHORT_HASH_BYTES = 4


def short_hash(message: str) -> str:
    """Return the first 4 bytes of the SHA-256 digest of *message* as hex.

    The result is 8 lowercase hex characters.  Distinct inputs may collide;
    for course URLs the compact id is worth that.

    Examples:
        >>> len(short_hash("https://www.tu-sport.de/kurs/yoga"))
        8
    """
    digest = hashlib.sha256(message.encode("utf-8")).digest()
    return digest[:SHORT_HASH_BYTES].hex()
