"""Shared enums for the QR Local redirect service.

This module defines all status and option enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = [
    "HealthStatus",
    "RequestStatus",
    "ErrorKind",
    "ErrorCorrection",
    "QRMode",
    "QRFormat",
]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    ERROR = "error"
    NOT_FOUND = "not_found"


class ErrorKind(StrEnum):
    """Machine-readable error kinds returned by the API."""

    INVALID_URL = "invalid_url"
    INVALID_KEY_FORMAT = "invalid_key_format"
    DUPLICATE_KEY = "duplicate_key"
    NOT_FOUND = "not_found"
    ALLOCATION_EXHAUSTED = "allocation_exhausted"
    STORE_FAILURE = "store_failure"
    QR_RENDER_FAILURE = "qr_render_failure"


class ErrorCorrection(StrEnum):
    """QR error correction levels."""

    LOW = "L"
    MEDIUM = "M"
    QUARTILE = "Q"
    HIGH = "H"


class QRMode(StrEnum):
    """Preferred QR encoding mode."""

    NUMERIC = "numeric"
    ALPHANUMERIC = "alphanumeric"
    BYTE = "byte"


class QRFormat(StrEnum):
    """Output image formats."""

    PNG = "png"
    SVG = "svg"

    @property
    def media_type(self) -> str:
        return "image/svg+xml" if self is QRFormat.SVG else "image/png"
