"""Per-run manifest mapping every current file to its fingerprint."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import List, Union

from pydantic import BaseModel, Field, field_validator

from .hasher import is_fingerprint

SNAPSHOT_VERSION = 1
SNAPSHOT_ENTRY_NAME = "snapshot.json"


class SnapshotEntry(BaseModel):
    """One visited file."""

    path: str = Field(..., description="Path rooted at the source directory's own name, '/' separated.")
    md5: str = Field(..., description="Hex MD5 fingerprint of the file content.")

    @field_validator("md5")
    @classmethod
    def _check_md5(cls, value: str) -> str:
        if not is_fingerprint(value):
            raise ValueError(f"not a fingerprint: {value!r}")
        return value


class SnapshotDocument(BaseModel):
    """Serialized form of a snapshot, embedded in the archive as ``snapshot.json``."""

    version: int = Field(SNAPSHOT_VERSION, description="Snapshot schema version.")
    job: str = Field(..., description="Job name the snapshot belongs to.")
    created_utc: str = Field(..., description="Creation time in ISO8601, UTC.")
    files: List[SnapshotEntry] = Field(default_factory=list, description="Every file seen by the run.")

    def by_path(self) -> dict[str, str]:
        return {entry.path: entry.md5 for entry in self.files}


def relative_entry_name(source_dir: Path, path: Path) -> str:
    """Return *path* as ``<source leaf>/<relative path>`` with '/' separators.

    ``/data/project/sub/file.txt`` under ``/data/project`` becomes
    ``project/sub/file.txt``.
    """

    source_dir = Path(source_dir)
    relative = Path(path).relative_to(source_dir)
    return PurePosixPath(source_dir.name, *relative.parts).as_posix()


class SnapshotBuilder:
    """Accumulate snapshot entries for one run."""

    def __init__(self, job: str) -> None:
        self._job = job
        self._entries: List[SnapshotEntry] = []
        self._created_utc = datetime.now(timezone.utc).isoformat()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[SnapshotEntry]:
        return list(self._entries)

    def add(self, fingerprint: str, relative_path: str) -> None:
        # never deduplicated: one entry per visited file
        self._entries.append(SnapshotEntry(path=relative_path, md5=fingerprint))

    def document(self) -> SnapshotDocument:
        return SnapshotDocument(
            version=SNAPSHOT_VERSION,
            job=self._job,
            created_utc=self._created_utc,
            files=list(self._entries),
        )

    def serialize(self) -> str:
        return self.document().model_dump_json(indent=2)

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(self.serialize())
        return path


def load_snapshot(data: Union[bytes, str]) -> SnapshotDocument:
    return SnapshotDocument.model_validate_json(data)


__all__ = [
    "SNAPSHOT_ENTRY_NAME",
    "SNAPSHOT_VERSION",
    "SnapshotBuilder",
    "SnapshotDocument",
    "SnapshotEntry",
    "load_snapshot",
    "relative_entry_name",
]
