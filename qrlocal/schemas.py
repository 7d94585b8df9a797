"""Pydantic schemas for API responses.

Schema Hierarchy
=================
::
    AddResponse (201)
    ├─ success: bool
    ├─ qr_url: str          "qr.local/abc2def"
    ├─ base32_id: str
    └─ original_url: str

    CheckResponse (200)
    ├─ exists: bool
    ├─ message: str | None          (absent record)
    └─ qr_url … last_visit          (present record)

    DeleteResponse (200)
    ├─ success, message
    ├─ deleted_id
    └─ deleted_url

    RedirectOut (list item)
    ErrorResponse (4xx/5xx)
    HealthResponse

Key Behaviours
===============
- Timestamps are always serialized as timezone-aware UTC ISO-8601 strings,
  whatever the backend returned.
- Request bodies are read directly in the route (JSON or form) so that the
  validator, not Pydantic, decides between InvalidURL and InvalidKeyFormat.
"""

import datetime

from pydantic import BaseModel

from qrlocal.config import Settings
from qrlocal.enums import HealthStatus
from qrlocal.models import Redirect

__all__ = [
    "AddResponse",
    "CheckResponse",
    "DeleteResponse",
    "RedirectOut",
    "ErrorResponse",
    "HealthResponse",
    "as_utc",
]


def as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


class AddResponse(BaseModel):
    success: bool = True
    qr_url: str
    base32_id: str
    original_url: str

    @classmethod
    def from_record(cls, record: Redirect, settings: Settings) -> "AddResponse":
        return cls(
            qr_url=settings.short_url(record.id),
            base32_id=record.id,
            original_url=record.destination,
        )


class CheckResponse(BaseModel):
    exists: bool
    message: str | None = None
    qr_url: str | None = None
    base32_id: str | None = None
    original_url: str | None = None
    created: datetime.datetime | None = None
    visits: int | None = None
    last_visit: datetime.datetime | None = None

    @classmethod
    def from_record(cls, record: Redirect, settings: Settings) -> "CheckResponse":
        return cls(
            exists=True,
            qr_url=settings.short_url(record.id),
            base32_id=record.id,
            original_url=record.destination,
            created=as_utc(record.created_at),
            visits=record.visit_count,
            last_visit=as_utc(record.last_visit_at),
        )

    @classmethod
    def missing(cls) -> "CheckResponse":
        return cls(exists=False, message="No redirect found for this URL")


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Redirect deleted successfully"
    deleted_id: str
    deleted_url: str


class RedirectOut(BaseModel):
    id: str
    qr_url: str
    destination: str
    created_at: datetime.datetime
    visit_count: int
    last_visit_at: datetime.datetime | None

    @classmethod
    def from_record(cls, record: Redirect, settings: Settings) -> "RedirectOut":
        return cls(
            id=record.id,
            qr_url=settings.short_url(record.id),
            destination=record.destination,
            created_at=as_utc(record.created_at),
            visit_count=record.visit_count,
            last_visit_at=as_utc(record.last_visit_at),
        )


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    kind: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus
