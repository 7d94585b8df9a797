"""SQLAlchemy ORM model for redirect records.

Data Model Layout
=================
::
    redirects table
    ├─ id (VARCHAR(20) PRIMARY KEY)      normalized base32 identifier
    ├─ destination (TEXT NOT NULL, INDEXED)
    ├─ created_at (TIMESTAMPTZ NOT NULL)
    ├─ visit_count (INTEGER DEFAULT 0)
    └─ last_visit_at (TIMESTAMPTZ NULL)

Key Behaviours
===============
- The primary key is the only uniqueness guarantee for identifiers;
  concurrent inserts of the same id fail with IntegrityError.
- destination is indexed for the exact-match existence check.
- created_at is written once, in Python, with microsecond resolution so that
  listings ordered by creation time are stable.
- visit_count and last_visit_at are only changed by a single UPDATE
  statement in the store.

Classes:
    Redirect:  A short identifier mapped to its destination URL.
"""

import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qrlocal.database import Base

__all__ = ["Redirect", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Redirect(Base):
    __tablename__ = "redirects"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    destination: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    visit_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_visit_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Redirect(id='{self.id}', visits={self.visit_count})>"
