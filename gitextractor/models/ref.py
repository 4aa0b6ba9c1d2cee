"""Branch and tag model."""

from typing import ClassVar

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind

BRANCH = "BRANCH"
TAG = "TAG"


class Ref(RawDataMixin, Base):
    """A named ref pointing at a commit."""

    __tablename__ = "refs"

    kind: ClassVar[RecordKind] = RecordKind.REF

    id: Mapped[str] = mapped_column(String(500), primary_key=True)  # "<repo_id>:<name>"
    repo_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    commit_sha: Mapped[str] = mapped_column(String(40), nullable=False)
    is_default: Mapped[bool | None] = mapped_column(Boolean)
    ref_type: Mapped[str] = mapped_column(String(16), nullable=False)  # BRANCH, TAG

    @staticmethod
    def make_id(repo_id: str, name: str) -> str:
        return f"{repo_id}:{name}"
