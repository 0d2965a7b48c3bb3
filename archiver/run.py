"""Run one incremental archive job."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, Optional, Set, Tuple

from core.paths import (
    get_archive_path,
    get_history_path,
    get_snapshot_scratch_path,
    get_tool_log_paths,
    validate_job_name,
)

from .errors import ArchiveWriteError, InvalidJobNameError, SourceDirectoryError
from .hasher import fingerprint_path, new_digest
from .history import HistoryStore
from .logs import NullRunLogger, RunLogger
from .snapshot import SNAPSHOT_ENTRY_NAME, SnapshotBuilder, relative_entry_name
from .types import JobConfig, RunResult
from .writer import ArchiveWriter


def _check_source(source: Path) -> Path:
    if not source.exists():
        raise SourceDirectoryError(f"source directory {source} does not exist")
    if not source.is_dir():
        raise SourceDirectoryError(f"source {source} is not a directory")
    if not os.access(source, os.R_OK | os.X_OK):
        raise SourceDirectoryError(f"source directory {source} is not readable")
    # absolute, not resolved: entry names are rooted at the configured leaf
    return Path(os.path.abspath(source))


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def iter_source_files(source: Path) -> Iterator[Path]:
    """Yield regular files under *source*, depth first in name order.

    Directories are traversed, not yielded. Unreadable directories abort the
    walk with the underlying ``OSError``.
    """

    for dirpath, dirnames, filenames in os.walk(source, onerror=_raise_walk_error):
        dirnames.sort()
        base = Path(dirpath)
        for name in sorted(filenames):
            path = base / name
            if path.is_file():
                yield path


def _work_files(config: JobConfig) -> Set[Path]:
    working_dir = config.working_dir.resolve()
    history = get_history_path(working_dir, config.name)
    return {
        get_archive_path(working_dir, config.name),
        history,
        history.with_name(history.name + ".tmp"),
        get_snapshot_scratch_path(working_dir),
        *get_tool_log_paths(working_dir),
    }


def _write_snapshot(
    writer: ArchiveWriter,
    snapshot: SnapshotBuilder,
    working_dir: Path,
) -> None:
    scratch = get_snapshot_scratch_path(working_dir)
    try:
        snapshot.save(scratch)
        writer.write_file(SNAPSHOT_ENTRY_NAME, scratch)
    finally:
        scratch.unlink(missing_ok=True)


def _walk_into_archive(
    config: JobConfig,
    source: Path,
    history: HistoryStore,
    snapshot: SnapshotBuilder,
    writer: ArchiveWriter,
    logger,
) -> Tuple[int, int]:
    new_files = 0
    excluded = 0
    work_files = _work_files(config)
    for path in iter_source_files(source):
        if path.resolve() in work_files:
            # the work dir may live inside the source tree
            continue
        if config.is_excluded(path.name):
            excluded += 1
            continue
        fingerprint = fingerprint_path(path, chunk_size=config.chunk_size)
        relative = relative_entry_name(source, path)
        if history.check_and_record(fingerprint):
            written = new_digest()
            writer.write_file(relative, path, digest=written)
            if written.hexdigest() != fingerprint:
                raise ArchiveWriteError(f"{relative} changed while it was being archived")
            new_files += 1
            logger.debug("file_added", path=relative, md5=fingerprint)
        snapshot.add(fingerprint, relative)
    return new_files, excluded


def run_job(config: JobConfig, *, logger: Optional[RunLogger] = None) -> RunResult:
    """Archive content of ``config.source`` not stored by any earlier run.

    The history file is rewritten only after the archive has been closed, so
    a failure anywhere before that leaves the previous history untouched and
    the run can simply be retried.
    """

    log = logger or NullRunLogger()
    try:
        validate_job_name(config.name)
    except ValueError as exc:
        raise InvalidJobNameError(str(exc)) from exc
    source = _check_source(config.source)
    working_dir = config.working_dir
    working_dir.mkdir(parents=True, exist_ok=True)
    target = get_archive_path(working_dir, config.name)
    history = HistoryStore.load(working_dir, config.name)
    snapshot = SnapshotBuilder(config.name)
    known_before = len(history)

    log.event(
        event="run_start",
        phase="collect",
        ok=True,
        job=config.name,
        source=str(source),
        exclude=config.exclude.pattern if config.exclude is not None else None,
        history=known_before,
    )
    writer = ArchiveWriter(target, compression=config.compression, chunk_size=config.chunk_size)
    try:
        with writer:
            new_files, excluded = _walk_into_archive(config, source, history, snapshot, writer, log)
            if new_files > 0:
                _write_snapshot(writer, snapshot, working_dir)
        history_path = history.persist(get_history_path(working_dir, config.name))
    except Exception as exc:
        log.event(event="run_failed", phase="archive", ok=False, job=config.name, error=str(exc))
        raise

    result = RunResult(
        job=config.name,
        archive_path=target,
        history_path=history_path,
        new_files=new_files,
        snapshot_entries=len(snapshot),
        excluded=excluded,
        archive_size=writer.size,
        entry_count=writer.entry_count,
        bytes_added=writer.bytes_written,
        new_fingerprints=history.added,
    )
    log.event(
        event="run_complete",
        phase="archive",
        ok=True,
        job=config.name,
        new_files=new_files,
        archive_size=result.archive_size,
        history=len(history),
    )
    return result


__all__ = ["iter_source_files", "run_job"]
