"""Per-file change summaries and their component labels."""

from typing import ClassVar

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind


class CommitFile(RawDataMixin, Base):
    """Change summary for one file in one commit."""

    __tablename__ = "commit_files"

    kind: ClassVar[RecordKind] = RecordKind.COMMIT_FILE

    commit_sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    file_path: Mapped[str] = mapped_column(String(1000), primary_key=True)
    additions: Mapped[int | None] = mapped_column(Integer)
    deletions: Mapped[int | None] = mapped_column(Integer)


class CommitFileComponent(RawDataMixin, Base):
    """Component label attached to a commit file."""

    __tablename__ = "commit_file_components"

    kind: ClassVar[RecordKind] = RecordKind.COMMIT_FILE_COMPONENT

    commit_sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    file_path: Mapped[str] = mapped_column(String(1000), primary_key=True)
    component_name: Mapped[str | None] = mapped_column(String(255))
