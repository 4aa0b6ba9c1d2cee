"""Runs one repository ingestion end to end."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pygit2
from sqlalchemy.orm import Session, sessionmaker

from gitextractor.models import Snapshot
from gitextractor.schemas.options import AcquisitionOptions
from gitextractor.services.acquisition_service import AcquisitionService, RepositoryHandle
from gitextractor.services.batch_writer import DEFAULT_BATCH_SIZE, BatchedWriter
from gitextractor.services.extractor import Extractor

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Outcome of a completed run."""

    repo_id: str
    strategy: str
    rows_written: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "status": "success",
            "repo_id": self.repo_id,
            "strategy": self.strategy,
            "rows_written": self.rows_written,
        }


class IngestionService:
    """Acquire a repository, let the extractor walk it, persist the records."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        acquisition_service: AcquisitionService | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.session_factory = session_factory
        self.acquisition_service = acquisition_service or AcquisitionService()
        self.batch_size = batch_size

    def run(self, options: AcquisitionOptions, extractor: Extractor) -> IngestionResult:
        """Ingest the repository described by ``options``.

        The writer is closed and any transient clone removed on every exit
        path. Errors propagate unchanged; records already flushed stay.
        """
        handle = self.acquisition_service.acquire(options)
        try:
            writer = BatchedWriter(
                self.session_factory,
                batch_size=self.batch_size,
                raw_data_params=options.raw_data_params,
            )
            with writer:
                writer.snapshot(self._snapshot(options, handle))
                extractor.run(handle, writer)
        finally:
            self.acquisition_service.cleanup(handle)

        rows = {kind.value: count for kind, count in writer.rows_written().items()}
        logger.info(f"Ingested {options.repo_id} via {handle.strategy.value}: {rows}")
        return IngestionResult(
            repo_id=options.repo_id,
            strategy=handle.strategy.value,
            rows_written=rows,
        )

    @staticmethod
    def _snapshot(options: AcquisitionOptions, handle: RepositoryHandle) -> Snapshot:
        return Snapshot(
            repo_id=options.repo_id,
            locator=options.url,
            strategy=handle.strategy.value,
            head_sha=_head_sha(handle.repo),
            details={"is_temporary": handle.is_temporary, "path": handle.path},
            created_at=datetime.now(timezone.utc),
        )


def _head_sha(repo: pygit2.Repository) -> str | None:
    """Hex sha of HEAD, or None for an empty or detached-unborn repository."""
    try:
        if repo.head_is_unborn:
            return None
        return str(repo.head.target)
    except pygit2.GitError:
        return None
