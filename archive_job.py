import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from archiver import (
    ArchiveError,
    ArchiveService,
    ArchiveVerificationError,
    JobConfigError,
)
from core.logging_utils import configure_json_logging

LOGGER = logging.getLogger("dedupzip")

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_RUN_FAILED = 3
EXIT_VERIFY_FAILED = 4


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Archive content of a directory that no earlier run of the job has stored."
    )
    parser.add_argument(
        "--work-dir",
        help="Directory holding history files, archives and logs (default: $DEDUPZIP_HOME or ~/.dedupzip).",
    )
    parser.add_argument("--job", help="Job name; namespaces the .history and .zip files.")
    parser.add_argument(
        "--source",
        help="Source directory. Overrides the job's configured source; required for unconfigured jobs.",
    )
    parser.add_argument(
        "--exclude",
        help="Regular expression matched against whole file names, e.g. '.*\\.tmp'.",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check the finished archive against its embedded snapshot.",
    )
    parser.add_argument(
        "--verify-only",
        action="store_true",
        help="Verify the job's existing archive without running the job.",
    )
    parser.add_argument("--list-jobs", action="store_true", help="List jobs configured in settings.json.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        service = ArchiveService(working_dir=Path(args.work_dir) if args.work_dir else None)
    except OSError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return EXIT_CONFIG
    configure_json_logging(service.working_dir, level=logging.DEBUG if args.verbose else logging.INFO)
    LOGGER.info("Working directory: %s", service.working_dir)

    if args.list_jobs:
        for name in service.list_jobs():
            print(name)
        return EXIT_OK

    if not args.job:
        print("[ERROR] --job is required", file=sys.stderr)
        return EXIT_CONFIG

    if args.verify_only:
        try:
            info = service.verify(args.job)
        except JobConfigError as exc:
            print(f"[ERROR] {exc}", file=sys.stderr)
            return EXIT_CONFIG
        except ArchiveVerificationError as exc:
            LOGGER.error("verification failed: %s", exc)
            print(f"[ERROR] verification failed: {exc}", file=sys.stderr)
            return EXIT_VERIFY_FAILED
        print(f"{info['archive']}: {info['entries']} entries verified")
        return EXIT_OK

    try:
        result = service.run(
            args.job,
            source=Path(args.source) if args.source else None,
            exclude=args.exclude,
            verify=True if args.verify else None,
        )
    except JobConfigError as exc:
        LOGGER.error("%s", exc)
        print(f"[ERROR] {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except ArchiveVerificationError as exc:
        LOGGER.error("verification failed: %s", exc)
        print(f"[ERROR] verification failed: {exc}", file=sys.stderr)
        return EXIT_VERIFY_FAILED
    except (ArchiveError, OSError) as exc:
        LOGGER.exception("run failed for job %s", args.job)
        print(f"[ERROR] run failed: {exc}", file=sys.stderr)
        return EXIT_RUN_FAILED

    print(f"{result.new_files} new files, archive {result.archive_path} ({result.archive_size} bytes)")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
