"""Columns shared by every domain table."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column


class RawDataMixin:
    """Provenance of the ingestion run that last wrote the row."""

    # JSON text such as {"RepoUrl": "https://..."}; stamped by the writer
    raw_data_params: Mapped[str | None] = mapped_column(String(1000), index=True)
