"""Tests de la configuration pydantic-settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config import Settings
from src.services.scanning import ScanConfig


class TestSettings:
    """Tests des valeurs par defaut et des validateurs."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.movie_datasources == []
        assert settings.update_workers == 3
        assert ".mkv" in settings.video_extensions
        assert settings.movieset_data_folder is None

    def test_env_prefix(self, monkeypatch) -> None:
        monkeypatch.setenv("CINESCAN_UPDATE_WORKERS", "1")
        monkeypatch.setenv("CINESCAN_MOVIE_DATASOURCES", '["/media/films", "/media/films"]')

        settings = Settings(_env_file=None)

        assert settings.update_workers == 1
        assert settings.movie_datasources == [Path("/media/films")]

    def test_workers_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, update_workers=0)

    def test_extensions_normalized(self) -> None:
        settings = Settings(_env_file=None, video_extensions=["MKV", ".Avi", ""])

        assert settings.video_extensions == [".mkv", ".avi"]

    def test_home_expanded(self) -> None:
        settings = Settings(_env_file=None, image_cache_dir="~/cache")

        assert settings.image_cache_dir == Path.home() / "cache"

    def test_sqlite_path(self) -> None:
        assert Settings(_env_file=None, database_url="sqlite://").sqlite_path is None
        assert Settings(
            _env_file=None, database_url="sqlite:////tmp/lib.db"
        ).sqlite_path == Path("/tmp/lib.db")


class TestScanConfig:
    def test_from_settings(self) -> None:
        settings = Settings(_env_file=None, update_workers=2, skip_folders=["@Recycle"])

        config = ScanConfig.from_settings(settings)

        assert config.workers == 2
        assert [p.literal for p in config.skip_patterns] == ["@Recycle"]
