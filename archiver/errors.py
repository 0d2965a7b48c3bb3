"""Error hierarchy for archive runs."""
from __future__ import annotations


class ArchiveError(RuntimeError):
    """Base exception for archive related failures."""


class JobConfigError(ArchiveError):
    """Raised when a job cannot be run as configured."""


class SourceDirectoryError(JobConfigError):
    """Raised when the source directory is missing or unreadable."""


class InvalidJobNameError(JobConfigError):
    """Raised when a job name cannot be used to namespace work files."""


class JobNotFoundError(JobConfigError):
    """Raised when a named job is not present in the settings."""


class ArchiveWriteError(ArchiveError):
    """Raised when an entry cannot be written into the archive."""


class ArchiveVerificationError(ArchiveError):
    """Raised when an archive does not match its embedded snapshot."""


__all__ = [
    "ArchiveError",
    "ArchiveVerificationError",
    "ArchiveWriteError",
    "InvalidJobNameError",
    "JobConfigError",
    "JobNotFoundError",
    "SourceDirectoryError",
]
