"""Repository to commit association."""

from typing import ClassVar

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind


class RepoCommit(RawDataMixin, Base):
    """A commit reachable from a repository."""

    __tablename__ = "repo_commits"

    kind: ClassVar[RecordKind] = RecordKind.REPO_COMMIT

    repo_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    commit_sha: Mapped[str] = mapped_column(String(40), primary_key=True)
