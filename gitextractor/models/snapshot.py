"""Ingestion run provenance."""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind


class Snapshot(RawDataMixin, Base):
    """Where and how the latest run for a repository got its data."""

    __tablename__ = "snapshots"

    kind: ClassVar[RecordKind] = RecordKind.SNAPSHOT

    repo_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    locator: Mapped[str] = mapped_column(String(1000), nullable=False)
    strategy: Mapped[str] = mapped_column(String(16), nullable=False)
    head_sha: Mapped[str | None] = mapped_column(String(40))
    details: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
