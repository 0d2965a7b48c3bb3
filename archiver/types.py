"""Common dataclasses shared across archiver modules."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from core.settings import DEFAULT_CHUNK_SIZE


@dataclass(slots=True)
class JobConfig:
    """Everything a single run needs to know about a job."""

    name: str
    source: Path
    working_dir: Path
    exclude: Optional[re.Pattern[str]] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    compression: str = "deflated"

    def __post_init__(self) -> None:
        self.source = Path(self.source)
        self.working_dir = Path(self.working_dir)
        if isinstance(self.exclude, str):
            self.exclude = re.compile(self.exclude) if self.exclude else None
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    def is_excluded(self, file_name: str) -> bool:
        if self.exclude is None:
            return False
        return self.exclude.fullmatch(file_name) is not None


@dataclass(slots=True)
class RunResult:
    """Outcome of one archive run, reported back to the caller."""

    job: str
    archive_path: Path
    history_path: Path
    new_files: int
    snapshot_entries: int
    excluded: int
    archive_size: int
    entry_count: int
    bytes_added: int = 0
    new_fingerprints: list[str] = field(default_factory=list)

    @property
    def has_snapshot(self) -> bool:
        return self.new_files > 0

    def as_dict(self) -> dict[str, object]:
        return {
            "job": self.job,
            "archive": str(self.archive_path),
            "history": str(self.history_path),
            "new_files": self.new_files,
            "snapshot_entries": self.snapshot_entries,
            "excluded": self.excluded,
            "archive_size": self.archive_size,
            "entry_count": self.entry_count,
            "bytes_added": self.bytes_added,
        }


__all__ = ["JobConfig", "RunResult"]
