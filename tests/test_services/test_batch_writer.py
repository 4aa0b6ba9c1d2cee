"""Tests for the BatchedWriter.

Tests the ability to:
- Buffer records per kind and flush at capacity
- Flush partial batches on close
- Derive author Accounts from commits
- Treat empty parent lists as a no-op
- Keep flushing other kinds when one kind fails
- Store refs, files, components and line changes through their own methods
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import sha
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
)
from gitextractor.models.commit_line_change import ADDED, CONTEXT, DELETED
from gitextractor.models.ref import BRANCH, TAG
from gitextractor.services.batch_writer import BatchedWriter, derive_records


def repo_commits(count: int) -> list[RepoCommit]:
    return [RepoCommit(repo_id="repo-1", commit_sha=sha(i)) for i in range(count)]


def failing_upsert(*failing_models):
    """Replacement for BatchedWriter._upsert that fails for some models."""
    original = BatchedWriter._upsert

    def _upsert(session, model, rows):
        if model in failing_models:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return original(session, model, rows)

    return _upsert


class TestBatchedWriterCapacity:
    """Test flushing when a buffer fills up."""

    def test_full_batch_flushes_once(self, session_factory, count_rows):
        """Exactly 100 records trigger one flush holding all of them."""
        writer = BatchedWriter(session_factory)

        for record in repo_commits(100):
            writer.append(record)

        assert writer.flush_count(RecordKind.REPO_COMMIT) == 1
        assert writer.pending(RecordKind.REPO_COMMIT) == 0
        assert count_rows(RepoCommit) == 100

    def test_partial_batch_waits_for_close(self, session_factory, count_rows):
        """Fewer than 100 records are only written by close()."""
        writer = BatchedWriter(session_factory)

        for record in repo_commits(99):
            writer.append(record)

        assert writer.flush_count(RecordKind.REPO_COMMIT) == 0
        assert count_rows(RepoCommit) == 0

        writer.close()

        assert writer.flush_count(RecordKind.REPO_COMMIT) == 1
        assert count_rows(RepoCommit) == 99

    def test_single_record_flushed_on_close(self, session_factory, count_rows):
        writer = BatchedWriter(session_factory)
        writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))

        writer.close()

        assert writer.flush_count(RecordKind.REPO_COMMIT) == 1
        assert count_rows(RepoCommit) == 1

    def test_kinds_buffer_independently(self, session_factory):
        """Filling one kind does not flush another."""
        writer = BatchedWriter(session_factory, batch_size=2)

        writer.append(Ref(id="repo-1:main", repo_id="repo-1", name="main",
                          commit_sha=sha(1), ref_type=BRANCH))
        writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))
        writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(2)))

        assert writer.flush_count(RecordKind.REPO_COMMIT) == 1
        assert writer.flush_count(RecordKind.REF) == 0
        assert writer.pending(RecordKind.REF) == 1

    def test_invalid_batch_size_rejected(self, session_factory):
        with pytest.raises(ValueError):
            BatchedWriter(session_factory, batch_size=0)


class TestCommitParents:
    """Test the plural parent-edge operation."""

    def test_empty_parents_touch_nothing(self):
        """A root commit's empty edge list never reaches storage."""
        session_factory = MagicMock()
        writer = BatchedWriter(session_factory)

        writer.append_commit_parents([])
        writer.close()

        assert writer.flush_count(RecordKind.COMMIT_PARENT) == 0
        assert writer.pending(RecordKind.COMMIT_PARENT) == 0
        assert writer.rows_written() == {}
        session_factory.assert_not_called()

    def test_merge_commit_edges_buffered_in_order(self, session_factory, make_parents):
        writer = BatchedWriter(session_factory)

        writer.append_commit_parents(make_parents(3, [1, 2]))

        assert writer.pending(RecordKind.COMMIT_PARENT) == 2
        writer.close()

        with session_factory() as session:
            edges = session.scalars(
                select(CommitParent).order_by(CommitParent.parent_commit_sha)
            ).all()
        assert [(e.commit_sha, e.parent_commit_sha) for e in edges] == [
            (sha(3), sha(1)),
            (sha(3), sha(2)),
        ]

    def test_first_failure_aborts_remaining_edges(self, session_factory, make_parents):
        """With capacity 1 every edge flushes; the first failure stops the loop."""
        writer = BatchedWriter(session_factory, batch_size=1)

        with patch.object(BatchedWriter, "_upsert", staticmethod(failing_upsert(CommitParent))):
            with pytest.raises(BatchFlushError) as exc_info:
                writer.append_commit_parents(make_parents(3, [1, 2]))

        assert exc_info.value.kind is RecordKind.COMMIT_PARENT
        # The failed edge stays buffered, the second was never appended
        assert writer.pending(RecordKind.COMMIT_PARENT) == 1


class TestAccountDerivation:
    """Test Account synthesis when appending commits."""

    def test_derive_records_orders_account_first(self, make_commit):
        commit = make_commit(1, email="a@x.com", name="Alice")

        account, derived_commit = derive_records(commit)

        assert isinstance(account, Account)
        assert account.id == "a@x.com"
        assert account.email == "a@x.com"
        assert account.full_name == "Alice"
        assert account.user_name == "Alice"
        assert derived_commit is commit

    def test_commit_append_buffers_account(self, session_factory, make_commit):
        writer = BatchedWriter(session_factory)

        writer.append(make_commit(1))

        assert writer.pending(RecordKind.ACCOUNT) == 1
        assert writer.pending(RecordKind.COMMIT) == 1

    def test_shared_author_is_not_a_conflict(self, session_factory, make_commit, count_rows):
        """Two commits by the same email converge on one Account."""
        writer = BatchedWriter(session_factory)

        writer.append(make_commit(1, email="a@x.com"))
        writer.append(make_commit(2, email="a@x.com"))

        assert writer.pending(RecordKind.ACCOUNT) == 2
        writer.close()

        assert count_rows(Account) == 1
        assert count_rows(Commit) == 2

    def test_shared_author_across_flushes_overwrites(self, session_factory, make_commit, count_rows):
        """Separate flushes of the same Account key overwrite instead of failing."""
        writer = BatchedWriter(session_factory, batch_size=1)

        writer.append(make_commit(1, email="a@x.com", name="Alice"))
        writer.append(make_commit(2, email="a@x.com", name="Alice Smith"))
        writer.close()

        assert writer.flush_count(RecordKind.ACCOUNT) == 2
        assert count_rows(Account) == 1
        with session_factory() as session:
            account = session.get(Account, "a@x.com")
        assert account.full_name == "Alice Smith"

    def test_account_failure_blocks_commit(self, session_factory, make_commit):
        """If the Account flush fails, the commit is not buffered."""
        writer = BatchedWriter(session_factory, batch_size=1)

        with patch.object(BatchedWriter, "_upsert", staticmethod(failing_upsert(Account))):
            with pytest.raises(BatchFlushError) as exc_info:
                writer.append(make_commit(1))

        assert exc_info.value.kind is RecordKind.ACCOUNT
        assert writer.pending(RecordKind.COMMIT) == 0


class TestFlushSemantics:
    """Test how flushed rows land in storage."""

    def test_reingested_line_change_overwrites(self, session_factory, count_rows):
        """The same (sha, path, line) key is overwritten, never duplicated."""
        for content in ("old line", "new line"):
            with BatchedWriter(session_factory) as writer:
                writer.append(CommitLineChange(
                    commit_sha=sha(1),
                    new_file_path="src/app.py",
                    line_no=10,
                    old_file_path="src/app.py",
                    hunk_num=1,
                    line_content=content,
                    changed_type=ADDED,
                    author_name="Alice",
                    author_email="a@x.com",
                ))

        assert count_rows(CommitLineChange) == 1
        with session_factory() as session:
            stored = session.get(CommitLineChange, (sha(1), "src/app.py", 10))
        assert stored.line_content == "new line"

    def test_duplicate_keys_in_one_batch_keep_last(self, session_factory, count_rows):
        with BatchedWriter(session_factory) as writer:
            writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))
            writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))

        assert count_rows(RepoCommit) == 1
        assert writer.rows_written() == {RecordKind.REPO_COMMIT: 1}

    def test_raw_data_params_stamped(self, session_factory):
        params = '{"RepoUrl": "/tmp/repo"}'
        with BatchedWriter(session_factory, raw_data_params=params) as writer:
            writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))

        with session_factory() as session:
            stored = session.get(RepoCommit, ("repo-1", sha(1)))
        assert stored.raw_data_params == params

    def test_failed_flush_keeps_records(self, session_factory):
        """A failed flush raises BatchFlushError and does not drop the batch."""
        writer = BatchedWriter(session_factory, batch_size=2)

        with patch.object(BatchedWriter, "_upsert", staticmethod(failing_upsert(RepoCommit))):
            writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))
            with pytest.raises(BatchFlushError) as exc_info:
                writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(2)))

        assert exc_info.value.kind is RecordKind.REPO_COMMIT
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert writer.pending(RecordKind.REPO_COMMIT) == 2
        assert writer.flush_count(RecordKind.REPO_COMMIT) == 0


class TestPerKindMethods:
    """Test that each per-kind method lands rows in its own table."""

    def test_refs_stored(self, session_factory, count_rows):
        writer = BatchedWriter(session_factory, batch_size=2)

        for name, ref_type in (("main", BRANCH), ("dev", BRANCH), ("v1.0", TAG)):
            writer.refs(Ref(id=Ref.make_id("repo-1", name), repo_id="repo-1", name=name,
                            commit_sha=sha(1), is_default=name == "main", ref_type=ref_type))

        assert writer.flush_count(RecordKind.REF) == 1
        writer.close()

        assert writer.flush_count(RecordKind.REF) == 2
        assert count_rows(Ref) == 3
        with session_factory() as session:
            tag = session.get(Ref, "repo-1:v1.0")
            main = session.get(Ref, "repo-1:main")
        assert tag.ref_type == TAG
        assert main.is_default

    def test_commit_files_and_components_stored(self, session_factory, count_rows):
        paths = ["src/app.py", "src/db.py", "README.md"]
        writer = BatchedWriter(session_factory, batch_size=2)

        for i, path in enumerate(paths):
            writer.commit_files(CommitFile(commit_sha=sha(1), file_path=path,
                                           additions=i + 1, deletions=i))
            writer.commit_file_components(CommitFileComponent(
                commit_sha=sha(1), file_path=path,
                component_name="docs" if path.endswith(".md") else "backend",
            ))
        writer.close()

        assert writer.rows_written()[RecordKind.COMMIT_FILE] == 3
        assert writer.rows_written()[RecordKind.COMMIT_FILE_COMPONENT] == 3
        assert count_rows(CommitFile) == 3
        assert count_rows(CommitFileComponent) == 3
        with session_factory() as session:
            stored_file = session.get(CommitFile, (sha(1), "src/db.py"))
            component = session.get(CommitFileComponent, (sha(1), "README.md"))
        assert (stored_file.additions, stored_file.deletions) == (2, 1)
        assert component.component_name == "docs"

    def test_line_changes_stored(self, session_factory, count_rows):
        writer = BatchedWriter(session_factory, batch_size=2)

        for line_no, changed_type in ((1, CONTEXT), (2, DELETED), (3, ADDED)):
            writer.commit_line_change(CommitLineChange(
                commit_sha=sha(1),
                new_file_path="src/app.py",
                line_no=line_no,
                repo_id="repo-1",
                old_file_path="src/app.py",
                hunk_num=1,
                line_content=f"line {line_no}",
                changed_type=changed_type,
                author_name="Alice",
                author_email="a@x.com",
            ))
        writer.close()

        assert count_rows(CommitLineChange) == 3
        with session_factory() as session:
            stored = session.scalars(
                select(CommitLineChange).order_by(CommitLineChange.line_no)
            ).all()
        assert [c.changed_type for c in stored] == [CONTEXT, DELETED, ADDED]
        assert stored[1].line_content == "line 2"


class TestClose:
    """Test closing the writer."""

    def test_close_attempts_every_kind(self, session_factory, make_commit, count_rows):
        """One failing kind does not stop the others from being flushed."""
        writer = BatchedWriter(session_factory)
        writer.append(make_commit(1))
        writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))

        with patch.object(BatchedWriter, "_upsert", staticmethod(failing_upsert(Account))):
            with pytest.raises(BatchFlushError) as exc_info:
                writer.close()

        assert exc_info.value.kind is RecordKind.ACCOUNT
        assert [e.kind for e in exc_info.value.errors] == [RecordKind.ACCOUNT]
        assert count_rows(RepoCommit) == 1
        assert count_rows(Commit) == 1
        assert count_rows(Account) == 0

    def test_close_collects_all_failures(self, session_factory, make_commit):
        writer = BatchedWriter(session_factory)
        writer.append(make_commit(1))

        with patch.object(BatchedWriter, "_upsert", staticmethod(failing_upsert(Account, Commit))):
            with pytest.raises(BatchFlushError) as exc_info:
                writer.close()

        assert [e.kind for e in exc_info.value.errors] == [RecordKind.ACCOUNT, RecordKind.COMMIT]

    def test_append_after_close_rejected(self, session_factory):
        writer = BatchedWriter(session_factory)
        writer.close()

        with pytest.raises(WriterClosedError):
            writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))

    def test_close_twice_is_noop(self, session_factory):
        writer = BatchedWriter(session_factory)
        writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))

        writer.close()
        writer.close()

        assert writer.flush_count(RecordKind.REPO_COMMIT) == 1

    def test_context_manager_flushes_on_error(self, session_factory, count_rows):
        """Buffered records survive an exception inside the with block."""
        with pytest.raises(RuntimeError):
            with BatchedWriter(session_factory) as writer:
                writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))
                raise RuntimeError("extractor crashed")

        assert writer.closed
        assert count_rows(RepoCommit) == 1

    def test_context_manager_keeps_original_error(self, session_factory):
        """A close failure during an error does not mask the original."""
        with patch.object(BatchedWriter, "_upsert", staticmethod(failing_upsert(RepoCommit))):
            with pytest.raises(RuntimeError):
                with BatchedWriter(session_factory) as writer:
                    writer.append(RepoCommit(repo_id="repo-1", commit_sha=sha(1)))
                    raise RuntimeError("extractor crashed")
