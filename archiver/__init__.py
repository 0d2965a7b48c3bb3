"""Incremental, content-deduplicating zip archiving."""
from __future__ import annotations

from .api import ArchiveService
from .errors import (
    ArchiveError,
    ArchiveVerificationError,
    ArchiveWriteError,
    InvalidJobNameError,
    JobConfigError,
    JobNotFoundError,
    SourceDirectoryError,
)
from .history import HistoryStore
from .run import run_job
from .snapshot import SnapshotBuilder, SnapshotDocument, SnapshotEntry
from .types import JobConfig, RunResult
from .verify import verify_archive

__all__ = [
    "ArchiveError",
    "ArchiveService",
    "ArchiveVerificationError",
    "ArchiveWriteError",
    "HistoryStore",
    "InvalidJobNameError",
    "JobConfig",
    "JobConfigError",
    "JobNotFoundError",
    "RunResult",
    "SnapshotBuilder",
    "SnapshotDocument",
    "SnapshotEntry",
    "SourceDirectoryError",
    "run_job",
    "verify_archive",
]
