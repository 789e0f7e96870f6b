"""
Diary API — Diary SQLAlchemy Model
====================================

What:  ORM model for the `diary` table.
Who:   Written only by DiaryService (through DiaryRepository); read by the
       response schemas and by Alembic for migrations.

Columns:
    - id:          Integer identity assigned on insert, never changed afterwards
    - title:       Up to 50 characters, required
    - content:     Up to 500 characters, required
    - image_path:  File name of the attached image inside images/<id>/, or NULL
    - created_at:  UTC, set once on insert
    - updated_at:  UTC, set on insert and refreshed on every UPDATE

Invariant: a non-NULL image_path names a file that exists under the entry's
image directory. DiaryService keeps it true by writing the file before
setting the column.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from diary_api.database import Base

TITLE_MAX_LENGTH = 50
CONTENT_MAX_LENGTH = 500


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Diary(Base):
    """One diary entry."""

    __tablename__ = "diary"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)

    content: Mapped[str] = mapped_column(String(CONTENT_MAX_LENGTH), nullable=False)

    image_path: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="File name of the current image inside images/<id>/",
    )

    # Python-side defaults: values are known after flush without a refresh
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @property
    def has_image(self) -> bool:
        return bool(self.image_path and self.image_path.strip())

    def __repr__(self) -> str:
        return f"<Diary(id={self.id}, title={self.title!r}, image_path={self.image_path!r})>"
