"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone

# Settings are read at import time by the app and Celery modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLONE_BASE_DIR", "/tmp/gitextractor-tests")

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.pool import StaticPool

from gitextractor.database import get_session_factory, init_db
from gitextractor.models import Commit, CommitParent

AUTHORED_AT = datetime(2022, 8, 18, 10, 31, tzinfo=timezone.utc)


def sha(n: int) -> str:
    """Deterministic 40-character commit hash."""
    return f"{n:040x}"


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def count_rows(session_factory):
    """Count stored rows of a model."""

    def _count(model) -> int:
        with session_factory() as session:
            return session.scalar(select(func.count()).select_from(model))

    return _count


@pytest.fixture
def make_commit():
    """Build a Commit with sensible author fields."""

    def _make(n: int, email: str = "a@x.com", name: str = "Alice") -> Commit:
        return Commit(
            sha=sha(n),
            message=f"commit {n}",
            author_name=name,
            author_email=email,
            author_id=email,
            authored_date=AUTHORED_AT,
            committer_name=name,
            committer_email=email,
            committer_id=email,
            committed_date=AUTHORED_AT,
            additions=1,
            deletions=0,
        )

    return _make


@pytest.fixture
def make_parents():
    """Build the parent edges of commit ``n`` pointing at ``parents``."""

    def _make(n: int, parents: list[int]) -> list[CommitParent]:
        return [CommitParent(commit_sha=sha(n), parent_commit_sha=sha(p)) for p in parents]

    return _make
