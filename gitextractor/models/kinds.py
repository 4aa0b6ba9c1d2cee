"""Closed set of domain record kinds handled by the batched writer."""

import enum


class RecordKind(str, enum.Enum):
    """One member per domain table.

    Declaration order is the order in which ``BatchedWriter.close`` flushes
    the remaining buffers.
    """

    SNAPSHOT = "snapshots"
    REPO_COMMIT = "repo_commits"
    ACCOUNT = "accounts"
    COMMIT = "commits"
    REF = "refs"
    COMMIT_PARENT = "commit_parents"
    COMMIT_FILE = "commit_files"
    COMMIT_FILE_COMPONENT = "commit_file_components"
    COMMIT_LINE_CHANGE = "commit_line_changes"
