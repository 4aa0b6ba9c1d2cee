"""Extractor interface and loader.

The extractor walks an opened repository and feeds every record it finds to
the batched writer. Walking history and computing line diffs lives outside
this package; implementations are plugged in by dotted path.
"""

import importlib
from typing import Protocol, runtime_checkable

from gitextractor.services.acquisition_service import RepositoryHandle
from gitextractor.services.batch_writer import BatchedWriter


@runtime_checkable
class Extractor(Protocol):
    """Produces domain records for one repository.

    Records may arrive in any order across kinds, but a record must be
    written before any record that references it. RepoCommit, Commit, Ref,
    CommitParent (possibly empty per commit), CommitFile,
    CommitFileComponent and CommitLineChange are expected.
    """

    def run(self, handle: RepositoryHandle, writer: BatchedWriter) -> None:
        ...


def load_extractor(path: str) -> Extractor:
    """Instantiate the extractor class named by ``module:Class`` or ``module.Class``."""
    if not path:
        raise ValueError("No extractor configured; set EXTRACTOR_CLASS")

    if ":" in path:
        module_name, _, class_name = path.partition(":")
    else:
        module_name, _, class_name = path.rpartition(".")

    module = importlib.import_module(module_name)
    extractor = getattr(module, class_name)()
    if not isinstance(extractor, Extractor):
        raise TypeError(f"{path} does not implement run(handle, writer)")
    return extractor
