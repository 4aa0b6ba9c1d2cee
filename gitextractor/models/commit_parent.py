"""Commit graph edges."""

from typing import ClassVar

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind


class CommitParent(RawDataMixin, Base):
    """Edge from a commit to one of its parents. Merges have several."""

    __tablename__ = "commit_parents"

    kind: ClassVar[RecordKind] = RecordKind.COMMIT_PARENT

    commit_sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    parent_commit_sha: Mapped[str] = mapped_column(String(40), primary_key=True)
