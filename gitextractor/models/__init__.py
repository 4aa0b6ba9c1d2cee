"""SQLAlchemy models."""

from gitextractor.models.kinds import RecordKind
from gitextractor.models.repo_commit import RepoCommit
from gitextractor.models.account import Account
from gitextractor.models.commit import Commit
from gitextractor.models.ref import Ref
from gitextractor.models.commit_parent import CommitParent
from gitextractor.models.commit_file import CommitFile, CommitFileComponent
from gitextractor.models.commit_line_change import CommitLineChange
from gitextractor.models.snapshot import Snapshot

__all__ = [
    "RecordKind",
    "RepoCommit",
    "Account",
    "Commit",
    "Ref",
    "CommitParent",
    "CommitFile",
    "CommitFileComponent",
    "CommitLineChange",
    "Snapshot",
]
