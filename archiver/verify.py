"""Verify a finished archive against its embedded snapshot."""
from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from .errors import ArchiveVerificationError
from .hasher import fingerprint_stream
from .logs import NullRunLogger, RunLogger
from .snapshot import SNAPSHOT_ENTRY_NAME, SnapshotDocument, load_snapshot


def _read_snapshot(archive: zipfile.ZipFile, path: Path) -> SnapshotDocument:
    try:
        raw = archive.read(SNAPSHOT_ENTRY_NAME)
    except KeyError as exc:
        raise ArchiveVerificationError(f"{path} holds content entries but no {SNAPSHOT_ENTRY_NAME}") from exc
    try:
        return load_snapshot(raw)
    except ValidationError as exc:
        raise ArchiveVerificationError(f"invalid {SNAPSHOT_ENTRY_NAME} in {path}: {exc}") from exc


def verify_archive(path: Path, *, logger: Optional[RunLogger] = None) -> Dict[str, object]:
    log = logger or NullRunLogger()
    path = Path(path)
    if not path.exists():
        raise ArchiveVerificationError(f"archive not found at {path}")
    try:
        archive = zipfile.ZipFile(path, "r")
    except zipfile.BadZipFile as exc:
        raise ArchiveVerificationError(f"{path} is not a readable zip archive") from exc

    with archive:
        names = archive.namelist()
        if len(names) != len(set(names)):
            raise ArchiveVerificationError(f"duplicate entry names in {path}")
        if not names:
            log.event(event="archive_verified", phase="verify", ok=True, archive=str(path), entries=0)
            return {"archive": str(path), "entries": 0, "snapshot_entries": 0, "content_entries": 0}

        snapshot = _read_snapshot(archive, path)
        expected = snapshot.by_path()
        content = [name for name in names if name != SNAPSHOT_ENTRY_NAME]
        if not content:
            raise ArchiveVerificationError(f"{path} has a snapshot but no new content")
        for name in content:
            fingerprint = expected.get(name)
            if fingerprint is None:
                raise ArchiveVerificationError(f"entry {name} is not listed in the snapshot")
            with archive.open(name, "r") as handle:
                actual = fingerprint_stream(handle)
            if actual != fingerprint:
                raise ArchiveVerificationError(f"fingerprint mismatch for {name}")

    log.event(
        event="archive_verified",
        phase="verify",
        ok=True,
        archive=str(path),
        entries=len(names),
    )
    return {
        "archive": str(path),
        "entries": len(names),
        "snapshot_entries": len(snapshot.files),
        "content_entries": len(content),
    }


__all__ = ["verify_archive"]
