"""Public API for archive jobs."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.paths import get_archive_path, resolve_working_dir
from core.settings import DEFAULT_CHUNK_SIZE, load_settings

from .errors import InvalidJobNameError, JobConfigError, JobNotFoundError
from .logs import RunLogger
from .run import run_job
from .types import JobConfig, RunResult
from .verify import verify_archive


class ArchiveService:
    """Resolve named jobs from settings and run or verify them."""

    def __init__(
        self,
        *,
        working_dir: Optional[Path] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._working_dir = resolve_working_dir(working_dir)
        self._settings = dict(settings) if settings is not None else load_settings(self._working_dir)
        self._logger = RunLogger(self._working_dir)

    # ------------------------------------------------------------------
    @property
    def working_dir(self) -> Path:
        return self._working_dir

    @property
    def logger(self) -> RunLogger:
        return self._logger

    def _archive_settings(self) -> Dict[str, Any]:
        raw = self._settings.get("archive")
        return raw if isinstance(raw, dict) else {}

    def _jobs(self) -> Dict[str, Any]:
        raw = self._settings.get("jobs")
        return raw if isinstance(raw, dict) else {}

    # ------------------------------------------------------------------
    def list_jobs(self) -> List[str]:
        return sorted(self._jobs())

    def job_config(
        self,
        name: str,
        *,
        source: Optional[Path] = None,
        exclude: Optional[str] = None,
    ) -> JobConfig:
        """Build a :class:`JobConfig` for *name*.

        Explicit *source* and *exclude* override what the settings hold; a
        job missing from settings is only valid when *source* is given.
        """

        job = self._jobs().get(name)
        if job is None and source is None:
            raise JobNotFoundError(f"job {name!r} is not configured in {self._working_dir / 'settings.json'}")
        job = job if isinstance(job, dict) else {}
        source_value = source if source is not None else job.get("source")
        if not source_value:
            raise JobConfigError(f"job {name!r} has no source directory")
        pattern = exclude if exclude is not None else job.get("exclude")
        try:
            compiled = re.compile(pattern) if pattern else None
        except re.error as exc:
            raise JobConfigError(f"job {name!r} has an invalid exclude pattern {pattern!r}: {exc}") from exc
        archive = self._archive_settings()
        return JobConfig(
            name=name,
            source=Path(str(source_value)).expanduser(),
            working_dir=self._working_dir,
            exclude=compiled,
            chunk_size=int(archive.get("chunk_size") or DEFAULT_CHUNK_SIZE),
            compression=str(archive.get("compression") or "deflated"),
        )

    # ------------------------------------------------------------------
    def run(
        self,
        name: str,
        *,
        source: Optional[Path] = None,
        exclude: Optional[str] = None,
        verify: Optional[bool] = None,
    ) -> RunResult:
        config = self.job_config(name, source=source, exclude=exclude)
        result = run_job(config, logger=self._logger)
        if verify is None:
            verify = bool(self._archive_settings().get("verify_after_run"))
        if verify:
            verify_archive(result.archive_path, logger=self._logger)
        return result

    def verify(self, name: str) -> Dict[str, object]:
        try:
            target = get_archive_path(self._working_dir, name)
        except ValueError as exc:
            raise InvalidJobNameError(str(exc)) from exc
        return verify_archive(target, logger=self._logger)


__all__ = ["ArchiveService"]
