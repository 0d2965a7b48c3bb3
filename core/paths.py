from __future__ import annotations

import os
import re
from pathlib import Path
from typing import List, Optional

__all__ = [
    "get_archive_path",
    "get_default_settings_paths",
    "get_history_path",
    "get_json_log_path",
    "get_logs_dir",
    "get_run_log_path",
    "get_settings_report_path",
    "get_tool_log_paths",
    "get_snapshot_scratch_path",
    "resolve_working_dir",
    "validate_job_name",
]

_JOB_NAME_RE = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9._-]*")
_SNAPSHOT_SCRATCH_NAME = "snapshot.json"


def _expand_path(value: str) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(value))
    return Path(expanded).resolve()


def _ensure_writable_dir(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    test_file = path / f".write_test_{os.getpid()}"
    try:
        with open(test_file, "w", encoding="utf-8") as handle:
            handle.write("ok")
        test_file.unlink(missing_ok=True)
        return True
    except OSError:
        try:
            if test_file.exists():
                test_file.unlink()
        except OSError:  # pragma: no cover - cleanup only
            pass
        return False


def resolve_working_dir(explicit: Optional[str | os.PathLike[str]] = None) -> Path:
    """Resolve the work directory holding history, archives and logs."""

    candidates: List[Path] = []
    if explicit:
        candidates.append(_expand_path(str(explicit)))
    env_home = os.environ.get("DEDUPZIP_HOME")
    if env_home:
        candidates.append(_expand_path(env_home))
    candidates.append(Path.home() / ".dedupzip")
    for candidate in candidates:
        if _ensure_writable_dir(candidate):
            return candidate
    raise OSError(f"no writable work directory among {[str(c) for c in candidates]}")


def validate_job_name(job_name: str) -> str:
    """Return *job_name* if it can safely namespace files in the work dir."""

    if not isinstance(job_name, str) or not _JOB_NAME_RE.fullmatch(job_name):
        raise ValueError(f"invalid job name: {job_name!r}")
    return job_name


def get_history_path(working_dir: Path, job_name: str) -> Path:
    return Path(working_dir) / f"{validate_job_name(job_name)}.history"


def get_archive_path(working_dir: Path, job_name: str) -> Path:
    return Path(working_dir) / f"{validate_job_name(job_name)}.zip"


def get_snapshot_scratch_path(working_dir: Path) -> Path:
    return Path(working_dir) / _SNAPSHOT_SCRATCH_NAME


def get_logs_dir(working_dir: Path) -> Path:
    return Path(working_dir) / "logs"


def get_run_log_path(working_dir: Path) -> Path:
    return get_logs_dir(working_dir) / "archiver.jsonl"


def get_json_log_path(working_dir: Path) -> Path:
    return get_logs_dir(working_dir) / "dedupzip.log.jsonl"


def get_settings_report_path(working_dir: Path) -> Path:
    return get_logs_dir(working_dir) / "settings_unknown.json"


def get_tool_log_paths(working_dir: Path) -> List[Path]:
    """Files this tool writes under ``logs/``; anything else there is user data."""
    return [
        get_run_log_path(working_dir),
        get_json_log_path(working_dir),
        get_settings_report_path(working_dir),
    ]


def get_default_settings_paths(working_dir: Path) -> List[Path]:
    return [Path(working_dir) / "settings.json"]
