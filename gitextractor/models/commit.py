"""Commit model."""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind


class Commit(RawDataMixin, Base):
    """A single commit, keyed by its full hash."""

    __tablename__ = "commits"

    kind: ClassVar[RecordKind] = RecordKind.COMMIT

    sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    message: Mapped[str | None] = mapped_column(Text)

    # Author
    author_name: Mapped[str | None] = mapped_column(String(255))
    author_email: Mapped[str | None] = mapped_column(String(255))
    author_id: Mapped[str | None] = mapped_column(String(255))
    authored_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Committer
    committer_name: Mapped[str | None] = mapped_column(String(255))
    committer_email: Mapped[str | None] = mapped_column(String(255))
    committer_id: Mapped[str | None] = mapped_column(String(255))
    committed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Stats
    additions: Mapped[int | None] = mapped_column(Integer)
    deletions: Mapped[int | None] = mapped_column(Integer)
