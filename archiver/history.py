"""Per-job set of fingerprints already stored in some earlier archive."""
from __future__ import annotations

import os
from pathlib import Path
from threading import Lock
from typing import Iterable, Iterator, List, Optional, Set

from core.paths import get_history_path

from .logs import LOGGER


class HistoryStore:
    """Append-only fingerprint set backed by ``<job>.history``.

    The file holds one fingerprint per line. A missing file is the normal
    state before the first run and loads as an empty set. Nothing is ever
    removed: :meth:`persist` writes the loaded fingerprints plus everything
    recorded during the run, replacing the previous file in one rename.
    """

    def __init__(self, path: Path, fingerprints: Optional[Iterable[str]] = None) -> None:
        self._path = Path(path)
        self._known: Set[str] = set(fingerprints or ())
        self._added: List[str] = []
        self._lock = Lock()

    # ------------------------------------------------------------------
    @classmethod
    def load(cls, working_dir: Path, job_name: str) -> "HistoryStore":
        return cls.load_path(get_history_path(working_dir, job_name))

    @classmethod
    def load_path(cls, path: Path) -> "HistoryStore":
        path = Path(path)
        if not path.exists():
            LOGGER.info("history file %s not found, assuming full backup", path)
            return cls(path)
        LOGGER.info("loading history from file %s", path)
        with path.open("r", encoding="utf-8") as handle:
            fingerprints = [line.strip() for line in handle]
        return cls(path, (fp for fp in fingerprints if fp))

    # ------------------------------------------------------------------
    @property
    def path(self) -> Path:
        return self._path

    @property
    def added(self) -> List[str]:
        """Fingerprints recorded since the store was loaded, in order."""
        return list(self._added)

    def __len__(self) -> int:
        return len(self._known)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._known))

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._known

    def contains(self, fingerprint: str) -> bool:
        return fingerprint in self._known

    def record(self, fingerprint: str) -> None:
        with self._lock:
            self._record_locked(fingerprint)

    def check_and_record(self, fingerprint: str) -> bool:
        """Atomically test membership and insert.

        Returns True exactly once per fingerprint, for the caller that must
        store the content.
        """
        with self._lock:
            return self._record_locked(fingerprint)

    def _record_locked(self, fingerprint: str) -> bool:
        if fingerprint in self._known:
            return False
        self._known.add(fingerprint)
        self._added.append(fingerprint)
        return True

    # ------------------------------------------------------------------
    def persist(self, path: Optional[Path] = None) -> Path:
        target = Path(path) if path is not None else self._path
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".tmp")
        with self._lock:
            lines = sorted(self._known)
        try:
            with open(tmp, "w", encoding="utf-8", newline="\n") as handle:
                for fingerprint in lines:
                    handle.write(fingerprint + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp, target)
        except OSError:
            try:
                if tmp.exists():
                    tmp.unlink()
            except OSError:
                pass
            raise
        LOGGER.info("history saved to %s (%d fingerprints, %d new)", target, len(lines), len(self._added))
        return target


__all__ = ["HistoryStore"]
