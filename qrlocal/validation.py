"""Input validation for redirect creation.

Both checks run before any store call and raise immediately; nothing here
is retried.

Validation Order: validate_custom_key()
========================================
::
    candidate
       │
       ├─ not a non-empty str ──────────► InvalidKeyFormat
       ├─ len > max_length ─────────────► InvalidKeyFormat
       ├─ char outside [A-Z2-7] ────────► InvalidKeyFormat
       ▼
    normalize() → lowercase key

Uniqueness is not checked here. A taken key is reported by the store's
insert as DuplicateKey.
"""

import re
from typing import Any
from urllib.parse import urlsplit

import validators

from qrlocal.codec import is_base32_key, normalize
from qrlocal.errors import InvalidKeyFormat, InvalidURL

__all__ = ["validate_custom_key", "validate_destination"]

_LOCAL_HOST_RE = re.compile(r"[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)*")


def validate_custom_key(candidate: Any, max_length: int) -> str:
    if not isinstance(candidate, str) or not candidate:
        raise InvalidKeyFormat(
            f"Custom key must be a string between 1 and {max_length} characters"
        )
    if len(candidate) > max_length:
        raise InvalidKeyFormat(
            f"Custom key must be a string between 1 and {max_length} characters"
        )
    if not is_base32_key(candidate):
        raise InvalidKeyFormat()
    return normalize(candidate)


def _is_local_network_url(url: str) -> bool:
    """Accept http(s) URLs whose host is a LAN-style name such as ``my_host.local``.

    Public-domain rules reject underscores in hostnames, which are common on
    local networks.
    """
    if any(ch.isspace() for ch in url):
        return False
    try:
        parts = urlsplit(url)
        # Raises ValueError for a malformed or out-of-range port
        parts.port
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    return _LOCAL_HOST_RE.fullmatch(parts.hostname) is not None


def validate_destination(url: Any) -> str:
    """Return ``url`` unchanged if it is an absolute URL.

    Hosts such as ``localhost``, ``192.168.1.20:8080`` or ``my_host.local``
    are accepted since the service targets a local network.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURL("URL is required")
    if not validators.url(url, simple_host=True) and not _is_local_network_url(url):
        raise InvalidURL()
    return url
