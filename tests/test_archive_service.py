import json

import pytest

from archiver.api import ArchiveService
from archiver.errors import JobConfigError, JobNotFoundError
from core.settings import save_settings


def _source(tmp_path):
    source = tmp_path / "project"
    source.mkdir()
    (source / "a.txt").write_text("hello", encoding="utf-8")
    (source / "notes.tmp").write_text("scratch", encoding="utf-8")
    return source


def test_run_configured_job_and_log_events(tmp_path):
    source = _source(tmp_path)
    work = tmp_path / "work"
    save_settings(
        {
            "archive": {"verify_after_run": True},
            "jobs": {"docs": {"source": str(source), "exclude": r".*\.tmp"}},
        },
        work,
    )

    service = ArchiveService(working_dir=work)
    assert service.list_jobs() == ["docs"]
    result = service.run("docs")

    assert result.new_files == 1
    assert result.excluded == 1
    events = [json.loads(line)["event"] for line in service.logger.path.read_text(encoding="utf-8").splitlines()]
    assert events == ["run_start", "run_complete", "archive_verified"]
    assert service.verify("docs")["entries"] == 2


def test_ad_hoc_job_with_explicit_source(tmp_path):
    source = _source(tmp_path)
    service = ArchiveService(working_dir=tmp_path / "work", settings={})
    result = service.run("adhoc", source=source)
    assert result.new_files == 2


def test_explicit_exclude_overrides_settings(tmp_path):
    source = _source(tmp_path)
    settings = {"jobs": {"docs": {"source": str(source), "exclude": None}}}
    service = ArchiveService(working_dir=tmp_path / "work", settings=settings)
    config = service.job_config("docs", exclude=r".*\.tmp")
    assert config.is_excluded("notes.tmp")
    assert config.chunk_size == 1024 * 1024


def test_unknown_job(tmp_path):
    service = ArchiveService(working_dir=tmp_path / "work", settings={})
    with pytest.raises(JobNotFoundError):
        service.run("missing")


def test_invalid_exclude_pattern(tmp_path):
    source = _source(tmp_path)
    service = ArchiveService(working_dir=tmp_path / "work", settings={})
    with pytest.raises(JobConfigError):
        service.job_config("docs", source=source, exclude="(unclosed")
