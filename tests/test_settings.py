"""Tests for SyncEngine.settings."""

from __future__ import annotations

import json
from pathlib import Path

from SyncEngine.settings import CONFIG_DIR_ENV, AppSettings, default_settings_path


class TestAppSettings:
    def test_defaults_when_missing(self, tmp_path: Path) -> None:
        assert AppSettings.load(str(tmp_path / "absent.json")) == AppSettings()

    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "settings.json"
        AppSettings(reject_duplicates=True, music_folder_count=50).save(str(path))

        loaded = AppSettings.load(str(path))

        assert loaded.reject_duplicates is True
        assert loaded.music_folder_count == 50
        assert loaded.backup_database is True
        assert not (tmp_path / "nested" / "settings.json.tmp").exists()

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"reject_duplicates": True, "theme": "dark"}))

        assert AppSettings.load(str(path)).reject_duplicates is True

    def test_wrong_types_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"music_folder_count": "many", "verbose": 1, "backup_database": False}))

        loaded = AppSettings.load(str(path))

        assert loaded.music_folder_count == 20
        assert loaded.verbose is False
        assert loaded.backup_database is False

    def test_bool_is_not_an_int(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"music_folder_count": True}))

        assert AppSettings.load(str(path)).music_folder_count == 20

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        assert AppSettings.load(str(path)) == AppSettings()

    def test_config_dir_from_environment(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path))

        assert default_settings_path() == str(tmp_path / "settings.json")
