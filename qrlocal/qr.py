"""QR code rendering for short URLs.

``render(text, options)`` is the only entrypoint; it is synchronous and
CPU-bound, so the HTTP layer runs it in the threadpool.

Mode Selection
==============
::
    preferred mode    text fits?                        encoded as
    ─────────────     ──────────────────────────────    ──────────────
    numeric           digits only                       numeric
    alphanumeric      upper(text) in [0-9A-Z $%*+-./:]  alphanumeric (upper-cased)
    anything else     ─                                 byte

Upper-casing in alphanumeric mode is safe for short URLs: the host is
case-insensitive and identifiers are normalized on lookup.
"""

import logging
import re
from dataclasses import dataclass
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.image.svg import SvgPathImage
from qrcode.util import MODE_8BIT_BYTE, MODE_ALPHA_NUM, MODE_NUMBER, QRData

from qrlocal.config import Settings
from qrlocal.enums import ErrorCorrection, QRFormat, QRMode
from qrlocal.errors import QRRenderError

__all__ = ["QROptions", "render"]

logger = logging.getLogger("qrlocal.qr")

_ERROR_CORRECTION = {
    ErrorCorrection.LOW: ERROR_CORRECT_L,
    ErrorCorrection.MEDIUM: ERROR_CORRECT_M,
    ErrorCorrection.QUARTILE: ERROR_CORRECT_Q,
    ErrorCorrection.HIGH: ERROR_CORRECT_H,
}

_NUMERIC_RE = re.compile(r"[0-9]+")
_ALPHANUMERIC_RE = re.compile(r"[0-9A-Z $%*+\-./:]*")


@dataclass(frozen=True)
class QROptions:
    error_correction: ErrorCorrection = ErrorCorrection.QUARTILE
    version: int | None = None
    mode: QRMode = QRMode.ALPHANUMERIC
    format: QRFormat = QRFormat.PNG
    box_size: int = 10
    border: int = 1

    @classmethod
    def from_settings(cls, settings: Settings, fmt: QRFormat = QRFormat.PNG) -> "QROptions":
        return cls(
            error_correction=settings.QR_ERROR_CORRECTION,
            version=settings.QR_VERSION,
            mode=settings.QR_MODE,
            format=fmt,
            box_size=settings.QR_BOX_SIZE,
            border=settings.QR_BORDER,
        )


def _segment(text: str, mode: QRMode) -> QRData:
    if mode is QRMode.NUMERIC and _NUMERIC_RE.fullmatch(text):
        return QRData(text, mode=MODE_NUMBER)
    if mode is QRMode.ALPHANUMERIC and _ALPHANUMERIC_RE.fullmatch(text.upper()):
        return QRData(text.upper(), mode=MODE_ALPHA_NUM)
    return QRData(text, mode=MODE_8BIT_BYTE)


def render(text: str, options: QROptions) -> bytes:
    """Render ``text`` as a PNG or SVG QR code.

    Raises:
        QRRenderError: the text does not fit the fixed version, or the
            imaging backend failed.
    """
    qr = qrcode.QRCode(
        version=options.version,
        error_correction=_ERROR_CORRECTION[options.error_correction],
        box_size=options.box_size,
        border=options.border,
        image_factory=SvgPathImage if options.format is QRFormat.SVG else None,
    )
    try:
        qr.add_data(_segment(text, options.mode))
        qr.make(fit=options.version is None)
        image = qr.make_image()
        buf = BytesIO()
        image.save(buf)
    except Exception as exc:
        logger.error(f"QR code generation error for '{text}': {exc}")
        raise QRRenderError() from exc
    return buf.getvalue()
