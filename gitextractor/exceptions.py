"""Errors raised by the ingestion subsystem."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitextractor.models.kinds import RecordKind


class GitExtractorError(Exception):
    """Base class for all ingestion errors."""


class ValidationError(GitExtractorError):
    """Acquisition options are malformed."""


class UnsupportedScheme(GitExtractorError):
    """No acquisition strategy matches the locator."""

    def __init__(self, locator: str):
        self.locator = locator
        super().__init__(f"Unsupported repository locator: {locator!r}")


class AcquisitionError(GitExtractorError):
    """Cloning or opening a repository failed.

    ``strategy`` names the transport that produced the failure; the
    transport's own exception is chained as ``__cause__``.
    """

    def __init__(self, strategy: str, message: str):
        self.strategy = strategy
        super().__init__(f"[{strategy}] {message}")


class BatchFlushError(GitExtractorError):
    """Writing a buffered batch to storage failed."""

    def __init__(self, kind: "RecordKind", message: str, errors: list["BatchFlushError"] | None = None):
        self.kind = kind
        # Every flush failure seen by close(); a single flush only carries itself
        self.errors = errors if errors is not None else [self]
        super().__init__(f"Failed to flush {kind.value}: {message}")


class WriterClosedError(GitExtractorError):
    """A record was appended after the writer was closed."""
