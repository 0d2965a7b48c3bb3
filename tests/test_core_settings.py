"""Tests for core.settings helpers."""

from __future__ import annotations

import json
from pathlib import Path

from core.settings import DEFAULT_CHUNK_SIZE, load_settings, merge_defaults, save_settings


def test_merge_defaults_includes_archive_block() -> None:
    merged = merge_defaults({})

    archive = merged["archive"]
    assert archive["chunk_size"] == DEFAULT_CHUNK_SIZE
    assert archive["compression"] == "deflated"
    assert archive["verify_after_run"] is False
    assert merged["jobs"] == {}


def test_load_settings_keeps_jobs_and_fills_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    legacy = {
        "archive": {"compression": "stored"},
        "jobs": {"docs": {"source": "/data/docs", "exclude": ".*\\.tmp"}},
    }
    path.write_text(json.dumps(legacy), encoding="utf-8")

    loaded = load_settings(tmp_path)
    assert loaded["archive"]["compression"] == "stored"
    assert loaded["archive"]["chunk_size"] == DEFAULT_CHUNK_SIZE
    assert loaded["jobs"]["docs"]["exclude"] == ".*\\.tmp"
    assert loaded["working_dir"] == str(tmp_path)

    save_settings(legacy, tmp_path)
    upgraded = json.loads(path.read_text(encoding="utf-8"))
    assert upgraded["version"] == 1
    assert upgraded["archive"]["verify_after_run"] is False


def test_unknown_keys_are_reported(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text(json.dumps({"archive": {"colour": "red"}, "extra": 1}), encoding="utf-8")
    load_settings(tmp_path)
    report = json.loads((tmp_path / "logs" / "settings_unknown.json").read_text(encoding="utf-8"))
    assert report["unknown"] == ["archive.colour", "extra"]


def test_corrupt_settings_fall_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text("{not json", encoding="utf-8")
    loaded = load_settings(tmp_path)
    assert loaded["archive"]["chunk_size"] == DEFAULT_CHUNK_SIZE
