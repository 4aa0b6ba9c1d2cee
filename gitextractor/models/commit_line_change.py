"""Line-level diff model."""

from typing import ClassVar

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind

ADDED = "ADDED"
DELETED = "DELETED"
CONTEXT = "CONTEXT"


class CommitLineChange(RawDataMixin, Base):
    """One changed line of one file in one commit."""

    __tablename__ = "commit_line_changes"

    kind: ClassVar[RecordKind] = RecordKind.COMMIT_LINE_CHANGE

    commit_sha: Mapped[str] = mapped_column(String(40), primary_key=True)
    new_file_path: Mapped[str] = mapped_column(String(1000), primary_key=True)
    line_no: Mapped[int] = mapped_column(Integer, primary_key=True)

    repo_id: Mapped[str | None] = mapped_column(String(255), index=True)
    old_file_path: Mapped[str | None] = mapped_column(String(1000))  # differs on rename
    hunk_num: Mapped[int | None] = mapped_column(Integer)
    line_content: Mapped[str | None] = mapped_column(Text)
    changed_type: Mapped[str] = mapped_column(String(16), nullable=False)  # ADDED, DELETED, CONTEXT

    # Denormalized from the commit
    author_name: Mapped[str | None] = mapped_column(String(255))
    author_email: Mapped[str | None] = mapped_column(String(255))
