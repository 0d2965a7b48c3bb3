"""Sequential zip writer used by archive runs."""
from __future__ import annotations

import time
import zipfile
from pathlib import Path
from types import TracebackType
from typing import Any, BinaryIO, Optional, Set, Tuple, Type

from core.settings import DEFAULT_CHUNK_SIZE

from .errors import ArchiveWriteError
from .logs import LOGGER

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
    "bzip2": zipfile.ZIP_BZIP2,
    "lzma": zipfile.ZIP_LZMA,
}
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def resolve_compression(name: str) -> int:
    try:
        return _COMPRESSION[str(name).lower()]
    except KeyError as exc:
        raise ArchiveWriteError(f"unsupported compression: {name!r}") from exc


def _zip_date_time(timestamp: float) -> Tuple[int, int, int, int, int, int]:
    value = time.localtime(timestamp)[:6]
    return max(value, _ZIP_EPOCH)


class ArchiveWriter:
    """Append named entries to a fresh zip file.

    Opening always starts from scratch: a file already present at the target
    is deleted. Every entry declares its size before the body is streamed.
    Leaving the context finalizes the central directory; when the block
    raised, the handle is released and the partial file is removed instead.
    """

    def __init__(
        self,
        target: Path,
        *,
        compression: str = "deflated",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._target = Path(target)
        self._compression = resolve_compression(compression)
        self._chunk_size = int(chunk_size)
        self._zip: Optional[zipfile.ZipFile] = None
        self._names: Set[str] = set()
        self._bytes_written = 0
        self._closed = False

    # ------------------------------------------------------------------
    def open(self) -> "ArchiveWriter":
        if self._zip is not None or self._closed:
            raise ArchiveWriteError(f"archive {self._target} already opened")
        self._target.parent.mkdir(parents=True, exist_ok=True)
        self._target.unlink(missing_ok=True)
        self._zip = zipfile.ZipFile(self._target, "w", compression=self._compression, allowZip64=True)
        LOGGER.info("adding files to %s", self._target)
        return self

    def __enter__(self) -> "ArchiveWriter":
        return self.open()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if exc_type is None:
            try:
                self.close()
            except BaseException:
                self.discard()
                raise
        else:
            self.discard()
        return False

    # ------------------------------------------------------------------
    @property
    def path(self) -> Path:
        return self._target

    @property
    def entry_count(self) -> int:
        return len(self._names)

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def size(self) -> int:
        return self._target.stat().st_size

    def __contains__(self, name: object) -> bool:
        return name in self._names

    # ------------------------------------------------------------------
    def write_entry(
        self,
        name: str,
        size: int,
        source: BinaryIO,
        *,
        date_time: Optional[Tuple[int, int, int, int, int, int]] = None,
        digest: Optional[Any] = None,
    ) -> int:
        """Stream *source* into a new entry of the declared *size*.

        When *digest* is given, every chunk written is also fed to it.
        """
        if self._zip is None:
            raise ArchiveWriteError(f"archive {self._target} is not open")
        if name in self._names:
            raise ArchiveWriteError(f"duplicate entry {name!r} in {self._target}")
        info = zipfile.ZipInfo(name, date_time=date_time or _zip_date_time(time.time()))
        info.compress_type = self._compression
        info.file_size = int(size)
        copied = 0
        with self._zip.open(info, "w", force_zip64=info.file_size > zipfile.ZIP64_LIMIT) as dest:
            for chunk in iter(lambda: source.read(self._chunk_size), b""):
                copied += len(chunk)
                if copied > info.file_size:
                    raise ArchiveWriteError(f"{name}: more than the declared {info.file_size} bytes")
                dest.write(chunk)
                if digest is not None:
                    digest.update(chunk)
            if copied != info.file_size:
                raise ArchiveWriteError(f"{name}: wrote {copied} bytes, declared {info.file_size}")
        self._names.add(name)
        self._bytes_written += copied
        return copied

    def write_file(self, name: str, path: Path, *, digest: Optional[Any] = None) -> int:
        path = Path(path)
        with path.open("rb") as handle:
            stat = path.stat()
            return self.write_entry(name, stat.st_size, handle, date_time=_zip_date_time(stat.st_mtime), digest=digest)

    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._zip is not None:
            handle, self._zip = self._zip, None
            handle.close()

    def discard(self) -> None:
        """Release the handle and delete the unfinished archive."""
        if self._zip is not None:
            try:
                self._zip.close()
            except (OSError, ValueError, zipfile.LargeZipFile) as exc:
                LOGGER.warning("closing unfinished archive %s failed: %s", self._target, exc)
            self._zip = None
        self._closed = True
        self._target.unlink(missing_ok=True)
        LOGGER.warning("removed unfinished archive %s", self._target)


__all__ = ["ArchiveWriter", "resolve_compression"]
