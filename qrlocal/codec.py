"""Base32 identifier codec.

Identifiers use the RFC 4648 base32 alphabet (``A-Z`` and ``2-7``), which
leaves out the easily confused ``0``/``O`` and ``1``/``I``/``L`` pairs and
fits the QR alphanumeric mode. Identifiers are case-insensitive; the
lowercase form is canonical for storage and lookups.
"""

import base64
import re

__all__ = ["ALPHABET", "encode", "normalize", "is_base32_key"]

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_BASE32_KEY_RE = re.compile(r"[A-Za-z2-7]+")


def encode(data: bytes) -> str:
    """Encode bytes as unpadded base32.

    Example:
        >>> encode(b"hello")
        'NBSWY3DP'
    """
    return base64.b32encode(data).decode("ascii").rstrip("=")


def normalize(identifier: str) -> str:
    return identifier.lower()


def is_base32_key(candidate: str) -> bool:
    return _BASE32_KEY_RE.fullmatch(candidate) is not None
