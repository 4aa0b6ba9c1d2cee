"""Type-routed batched writer for domain records.

Records are buffered per ``RecordKind`` and written in one upsert statement
per batch. A flush is all-or-nothing for the records of that one buffer;
there is no transaction spanning several kinds.
"""

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from gitextractor.database import Base
from gitextractor.exceptions import BatchFlushError, WriterClosedError
from gitextractor.models import (
    Account,
    Commit,
    CommitFile,
    CommitFileComponent,
    CommitLineChange,
    CommitParent,
    RecordKind,
    Ref,
    RepoCommit,
    Snapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class Batch:
    """Buffered records of a single kind."""

    kind: RecordKind
    records: list[Base] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    flush_count: int = 0
    rows_written: int = 0


def derive_records(commit: Commit) -> tuple[Account, Commit]:
    """Records produced by ingesting one commit, in write order.

    The author's Account comes first so that every stored commit has a
    resolvable author.
    """
    account = Account(
        id=commit.author_email or "",
        email=commit.author_email,
        full_name=commit.author_name,
        user_name=commit.author_name,
    )
    return account, commit


class BatchedWriter:
    """Buffers domain records per kind and flushes them in batches.

    One writer belongs to one ingestion run. Use it as a context manager, or
    call :meth:`close` on every exit path, otherwise the unflushed tail of
    each buffer is lost.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        batch_size: int = DEFAULT_BATCH_SIZE,
        raw_data_params: str | None = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.session_factory = session_factory
        self.batch_size = batch_size
        self.raw_data_params = raw_data_params
        self.closed = False
        self._batches: dict[RecordKind, Batch] = {}
        self._batches_lock = threading.Lock()

    def __enter__(self) -> "BatchedWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.close()
            return False
        # Flush what we have, but let the original error win
        try:
            self.close()
        except BatchFlushError as e:
            logger.error(f"Close after failed run also failed: {e}")
        return False

    # -- routing -----------------------------------------------------------

    def append(self, record: Base) -> None:
        """Buffer ``record``, flushing its batch when it reaches capacity.

        Raises:
            BatchFlushError: the triggered flush failed. The record stays
                buffered.
            WriterClosedError: the writer was already closed.
        """
        if record.kind is RecordKind.COMMIT:
            self.ingest_commit(record)
            return
        self._add(self._batch_for(record.kind), record)

    def ingest_commit(self, commit: Commit) -> None:
        """Buffer the commit's author Account, then the commit.

        If the Account cannot be written the commit is not buffered.
        """
        for record in derive_records(commit):
            self._add(self._batch_for(record.kind), record)

    def append_commit_parents(self, edges: Sequence[CommitParent]) -> None:
        """Buffer the parent edges of one commit, in order.

        A root commit has no edges; an empty sequence touches nothing.
        """
        if not edges:
            return
        batch = self._batch_for(edges[0].kind)
        for edge in edges:
            self._add(batch, edge)

    # Per-kind entry points used by extractors

    def repo_commits(self, repo_commit: RepoCommit) -> None:
        self.append(repo_commit)

    def commits(self, commit: Commit) -> None:
        self.ingest_commit(commit)

    def refs(self, ref: Ref) -> None:
        self.append(ref)

    def commit_files(self, commit_file: CommitFile) -> None:
        self.append(commit_file)

    def commit_file_components(self, component: CommitFileComponent) -> None:
        self.append(component)

    def commit_line_change(self, line_change: CommitLineChange) -> None:
        self.append(line_change)

    def snapshot(self, snapshot: Snapshot) -> None:
        self.append(snapshot)

    def commit_parents(self, edges: Sequence[CommitParent]) -> None:
        self.append_commit_parents(edges)

    # -- buffering ---------------------------------------------------------

    def _batch_for(self, kind: RecordKind) -> Batch:
        if self.closed:
            raise WriterClosedError(f"Cannot append {kind.value} to a closed writer")
        with self._batches_lock:
            batch = self._batches.get(kind)
            if batch is None:
                batch = Batch(kind=kind)
                self._batches[kind] = batch
            return batch

    def _add(self, batch: Batch, record: Base) -> None:
        with batch.lock:
            batch.records.append(record)
            if len(batch.records) >= self.batch_size:
                self._flush(batch)

    def _flush(self, batch: Batch) -> None:
        """Write every buffered record of ``batch``. Caller holds the lock."""
        model = type(batch.records[0])
        rows = self._dedupe(model, [self._row_values(r) for r in batch.records])

        try:
            with self.session_factory() as session, session.begin():
                self._upsert(session, model, rows)
        except SQLAlchemyError as e:
            logger.error(f"Flush of {len(rows)} {batch.kind.value} rows failed: {e}")
            raise BatchFlushError(batch.kind, str(e)) from e

        batch.flush_count += 1
        batch.rows_written += len(rows)
        batch.records.clear()
        logger.debug(f"Flushed {len(rows)} {batch.kind.value} rows")

    def _row_values(self, record: Base) -> dict[str, Any]:
        mapper = sa_inspect(type(record))
        row = {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}
        if row.get("raw_data_params") is None:
            row["raw_data_params"] = self.raw_data_params
        return row

    @staticmethod
    def _dedupe(model: type[Base], rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Keep the last row per primary key.

        ON CONFLICT may touch each row only once per statement.
        """
        keys = [c.key for c in sa_inspect(model).primary_key]
        unique: dict[tuple, dict[str, Any]] = {}
        for row in rows:
            unique[tuple(row[k] for k in keys)] = row
        return list(unique.values())

    @staticmethod
    def _upsert(session: Session, model: type[Base], rows: list[dict[str, Any]]) -> None:
        """Insert ``rows``, overwriting existing rows with the same key."""
        dialect = session.get_bind().dialect.name
        insert = UPSERT_DIALECTS.get(dialect)

        if insert is None:
            for row in rows:
                session.merge(model(**row))
            return

        table = model.__table__
        pk = [c.name for c in table.primary_key.columns]
        stmt = insert(table)
        updates = {c.name: stmt.excluded[c.name] for c in table.columns if c.name not in pk}
        if updates:
            stmt = stmt.on_conflict_do_update(index_elements=pk, set_=updates)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=pk)
        session.execute(stmt, rows)

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Flush every non-empty buffer and stop accepting records.

        All buffers are attempted even if one fails. The first failure is
        raised with every failure listed on its ``errors`` attribute.
        """
        if self.closed:
            return
        self.closed = True

        errors: list[BatchFlushError] = []
        for kind in RecordKind:
            batch = self._batches.get(kind)
            if batch is None:
                continue
            with batch.lock:
                if not batch.records:
                    continue
                try:
                    self._flush(batch)
                except BatchFlushError as e:
                    errors.append(e)

        if errors:
            first = errors[0]
            first.errors = errors
            raise first

        logger.info(
            "Writer closed: "
            + ", ".join(f"{k.value}={v}" for k, v in self.rows_written().items())
        )

    def flush_count(self, kind: RecordKind) -> int:
        batch = self._batches.get(kind)
        return batch.flush_count if batch else 0

    def pending(self, kind: RecordKind) -> int:
        batch = self._batches.get(kind)
        return len(batch.records) if batch else 0

    def rows_written(self) -> dict[RecordKind, int]:
        """Rows written so far, per kind that has been used."""
        return {kind: batch.rows_written for kind, batch in self._batches.items()}
