"""Service for resolving a repository locator into an opened repository."""

import enum
import logging
import os
import re
import shutil
import uuid
from dataclasses import dataclass

import pygit2

from gitextractor.config import get_settings
from gitextractor.exceptions import AcquisitionError, UnsupportedScheme
from gitextractor.schemas.options import AcquisitionOptions

logger = logging.getLogger(__name__)

SSH_PREFIX = "ssh://"

# pygit2 raises KeyError for a missing repository on older releases
TRANSPORT_ERRORS = (pygit2.GitError, KeyError, OSError, ValueError)


class Strategy(str, enum.Enum):
    """How a repository is obtained."""

    HTTPS = "https"
    SSH = "ssh"
    LOCAL = "local"


@dataclass
class RepositoryHandle:
    """An opened repository plus where it came from."""

    repo: pygit2.Repository
    strategy: Strategy
    path: str
    repo_id: str
    is_temporary: bool = False


def select_strategy(locator: str) -> Strategy:
    """Pick the acquisition strategy for ``locator``. First match wins."""
    if locator.startswith("http"):
        return Strategy.HTTPS
    if locator.removeprefix(SSH_PREFIX).startswith("git@"):
        return Strategy.SSH
    if locator.startswith("/"):
        return Strategy.LOCAL
    raise UnsupportedScheme(locator)


class AcquisitionService:
    """Clones or opens repositories for ingestion."""

    def __init__(self, clone_base_dir: str | None = None):
        self.clone_base_dir = clone_base_dir or get_settings().clone_base_dir

    def acquire(self, options: AcquisitionOptions) -> RepositoryHandle:
        """Resolve ``options`` into a repository handle.

        Raises:
            UnsupportedScheme: no strategy matches the locator.
            AcquisitionError: the transport failed; carries the strategy.
        """
        strategy = select_strategy(options.url)
        logger.info(f"Acquiring repository {options.repo_id} via {strategy.value}")

        if strategy is Strategy.HTTPS:
            return self.clone_over_http(options)
        if strategy is Strategy.SSH:
            return self.clone_over_ssh(options)
        return self.open_local(options)

    def clone_over_http(self, options: AcquisitionOptions) -> RepositoryHandle:
        callbacks = None
        if options.user or options.password:
            callbacks = pygit2.RemoteCallbacks(
                credentials=pygit2.UserPass(options.user or "", options.password or "")
            )
        return self._clone(
            Strategy.HTTPS,
            options,
            url=options.url,
            callbacks=callbacks,
            proxy=options.proxy,
        )

    def clone_over_ssh(self, options: AcquisitionOptions) -> RepositoryHandle:
        url = options.url.removeprefix(SSH_PREFIX)
        if options.private_key:
            credentials = pygit2.KeypairFromMemory(
                "git", None, options.private_key, options.passphrase or ""
            )
        else:
            credentials = pygit2.KeypairFromAgent("git")
        return self._clone(
            Strategy.SSH,
            options,
            url=url,
            callbacks=pygit2.RemoteCallbacks(credentials=credentials),
        )

    def open_local(self, options: AcquisitionOptions) -> RepositoryHandle:
        """Open an existing repository in place. No clone, no network."""
        try:
            repo = pygit2.Repository(options.url)
        except TRANSPORT_ERRORS as e:
            raise AcquisitionError(
                Strategy.LOCAL.value, f"cannot open {options.url}: {e}"
            ) from e

        return RepositoryHandle(
            repo=repo,
            strategy=Strategy.LOCAL,
            path=options.url,
            repo_id=options.repo_id,
        )

    def _clone(
        self,
        strategy: Strategy,
        options: AcquisitionOptions,
        url: str,
        callbacks: pygit2.RemoteCallbacks | None,
        proxy: str | None = None,
    ) -> RepositoryHandle:
        os.makedirs(self.clone_base_dir, exist_ok=True)
        clone_path = os.path.join(
            self.clone_base_dir, f"{_safe_name(options.repo_id)}-{uuid.uuid4().hex[:8]}"
        )

        logger.info(f"Cloning {self._sanitize(url, options)} to {clone_path}")
        kwargs = {"callbacks": callbacks}
        if proxy:
            kwargs["proxy"] = proxy

        try:
            repo = pygit2.clone_repository(url, clone_path, bare=True, **kwargs)
        except TRANSPORT_ERRORS as e:
            self._remove(clone_path)
            raise AcquisitionError(
                strategy.value, f"clone failed: {self._sanitize(str(e), options)}"
            ) from e

        logger.info(f"Cloned {options.repo_id} into {clone_path}")
        return RepositoryHandle(
            repo=repo,
            strategy=strategy,
            path=clone_path,
            repo_id=options.repo_id,
            is_temporary=True,
        )

    def cleanup(self, handle: RepositoryHandle) -> None:
        """Delete the transient clone behind ``handle``, if any."""
        if not handle.is_temporary:
            return
        base = os.path.abspath(self.clone_base_dir) + os.sep
        if not os.path.abspath(handle.path).startswith(base):
            logger.warning(f"Refusing to delete path outside clone base: {handle.path}")
            return
        self._remove(handle.path)

    def _remove(self, path: str) -> None:
        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                logger.info(f"Cleaned up {path}")
            except OSError as e:
                logger.error(f"Failed to cleanup {path}: {e}")

    @staticmethod
    def _sanitize(text: str, options: AcquisitionOptions) -> str:
        """Remove credentials from text destined for logs and errors."""
        sanitized = re.sub(r"://[^/@\s]+@", "://[REDACTED]@", text)
        for secret in (options.password, options.passphrase):
            if secret:
                sanitized = sanitized.replace(secret, "[REDACTED]")
        return sanitized


def _safe_name(repo_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", repo_id)[:64] or "repo"
