"""Command line entry point: ``qrlocal [max_id_length] [options]``.

Usage
-----
qrlocal                       # defaults: 7-char ids, error correction Q
qrlocal 14 -e H -v 2          # version 2 QR codes with high error correction
qrlocal 10 -m byte -e L       # byte mode with low error correction

Flags override the environment / ``.env`` values read by Settings.
"""

import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError

from qrlocal.config import Settings
from qrlocal.enums import ErrorCorrection, QRMode
from qrlocal.main import create_app

__all__ = ["build_parser", "settings_from_args", "main"]

logger = logging.getLogger("qrlocal")


def _version(value: str) -> int:
    try:
        version = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("QR version must be between 1 and 40")
    if not 1 <= version <= 40:
        raise argparse.ArgumentTypeError("QR version must be between 1 and 40")
    return version


def _id_length(value: str) -> int:
    try:
        length = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Base32 length must be between 1 and 20")
    if not 1 <= length <= 20:
        raise argparse.ArgumentTypeError("Base32 length must be between 1 and 20")
    return length


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrlocal",
        description="QR Local - URL shortener with QR code generation",
    )
    parser.add_argument(
        "max_id_length",
        nargs="?",
        type=_id_length,
        help="Maximum length for base32 IDs (1-20, default: 7)",
    )
    parser.add_argument(
        "-e",
        "--qr-error",
        type=str.upper,
        choices=[level.value for level in ErrorCorrection],
        help="Error correction level (default: Q)",
    )
    parser.add_argument("-v", "--qr-version", type=_version, help="QR code version (default: auto)")
    parser.add_argument(
        "-m",
        "--qr-mode",
        type=str.lower,
        choices=[mode.value for mode in QRMode],
        help="Encoding mode (default: alphanumeric)",
    )
    parser.add_argument("--host", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Listen port (default: 3000)")
    parser.add_argument("--database-url", help="SQLAlchemy async database URL")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "MAX_ID_LENGTH": args.max_id_length,
        "QR_ERROR_CORRECTION": args.qr_error,
        "QR_VERSION": args.qr_version,
        "QR_MODE": args.qr_mode,
        "HOST": args.host,
        "PORT": args.port,
        "DATABASE_URL": args.database_url,
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ValidationError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Using base32 ID length: {settings.MAX_ID_LENGTH} characters")
    logger.info(
        f"QR Code settings: Error correction={settings.QR_ERROR_CORRECTION.value}, "
        f"Version={settings.QR_VERSION or 'auto'}, Mode={settings.QR_MODE.value}"
    )
    logger.info(f"Add redirects at: http://localhost:{settings.PORT}/human/add")
    logger.info(f"Browse redirects at: http://localhost:{settings.PORT}/human/browse")

    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    sys.exit(main())
