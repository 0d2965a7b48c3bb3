"""Structured logging helpers for archive runs."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict

from core.paths import get_run_log_path

LOGGER = logging.getLogger("dedupzip.archiver")


class RunLogger:
    """Write structured JSONL entries for archive related events."""

    def __init__(self, working_dir: Path) -> None:
        self._working_dir = Path(working_dir)
        self._log_path = get_run_log_path(self._working_dir)
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._log_path

    # ------------------------------------------------------------------
    def _write(self, payload: Dict[str, Any], *, level: int) -> None:
        payload.setdefault("ts", datetime.now(timezone.utc).isoformat())
        line = json.dumps(payload, sort_keys=True, default=str)
        with self._lock:
            with self._log_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        LOGGER.log(level, "%s", line)

    def event(self, *, event: str, phase: str, ok: bool, **extra: Any) -> None:
        payload = {
            "event": event,
            "phase": phase,
            "ok": bool(ok),
        }
        if extra:
            payload.update(extra)
        level = logging.INFO if ok else logging.ERROR
        self._write(payload, level=level)

    def info(self, event: str, **extra: Any) -> None:
        self._write({"event": event, **extra, "ok": True}, level=logging.INFO)

    def debug(self, event: str, **extra: Any) -> None:
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug("%s", json.dumps({"event": event, **extra}, sort_keys=True, default=str))

    def warning(self, event: str, **extra: Any) -> None:
        self._write({"event": event, **extra, "ok": False}, level=logging.WARNING)

    def error(self, event: str, **extra: Any) -> None:
        self._write({"event": event, **extra, "ok": False}, level=logging.ERROR)


class NullRunLogger:
    """Logger used when a caller does not want a JSONL trail on disk."""

    def event(self, *, event: str, phase: str, ok: bool, **extra: Any) -> None:
        LOGGER.log(logging.INFO if ok else logging.ERROR, "%s %s ok=%s %s", event, phase, ok, extra or "")

    def info(self, event: str, **extra: Any) -> None:
        LOGGER.info("%s %s", event, extra or "")

    def debug(self, event: str, **extra: Any) -> None:
        LOGGER.debug("%s %s", event, extra or "")

    def warning(self, event: str, **extra: Any) -> None:
        LOGGER.warning("%s %s", event, extra or "")

    def error(self, event: str, **extra: Any) -> None:
        LOGGER.error("%s %s", event, extra or "")


__all__ = ["LOGGER", "NullRunLogger", "RunLogger"]
