"""Account model derived from commit authors."""

from typing import ClassVar

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gitextractor.database import Base
from gitextractor.models.base import RawDataMixin
from gitextractor.models.kinds import RecordKind


class Account(RawDataMixin, Base):
    """Author identity keyed by email. Never walked directly."""

    __tablename__ = "accounts"

    kind: ClassVar[RecordKind] = RecordKind.ACCOUNT

    id: Mapped[str] = mapped_column(String(255), primary_key=True)  # author email
    email: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(255))
    user_name: Mapped[str | None] = mapped_column(String(255))
