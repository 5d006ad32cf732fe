"""
Unit tests for storage path resolution.
"""

import sys
from pathlib import Path

import pytest

from provisioning_library.storage import paths


@pytest.mark.unit
class TestPaths:
    """Test path resolution functions."""

    def test_get_home_dir_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PROVISIOND_HOME", raising=False)

        assert paths.get_home_dir() == Path("~/.provisiond").expanduser().resolve()

    def test_get_home_dir_custom(self, mock_storage_env: Path) -> None:
        assert paths.get_home_dir() == mock_storage_env.resolve()

    def test_get_config_dir_creates_directory(self, mock_storage_env: Path) -> None:
        config_dir = paths.get_config_dir()

        assert config_dir.is_dir()
        assert config_dir == mock_storage_env.resolve() / "config"

    def test_get_cache_dir_creates_directory(self, mock_storage_env: Path) -> None:
        cache_dir = paths.get_cache_dir()

        assert cache_dir.is_dir()
        assert cache_dir == mock_storage_env.resolve() / "cache"

    def test_cache_dir_override(self, mock_storage_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        override = mock_storage_env / "elsewhere"
        monkeypatch.setenv("PROVISIOND_CACHE_DIR", str(override))

        assert paths.get_cache_dir() == override.resolve()
        assert paths.get_index_path() == override.resolve() / "Provisioning Profiles.index"

    def test_config_dir_override(self, mock_storage_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        override = mock_storage_env / "etc"
        monkeypatch.setenv("PROVISIOND_CONFIG_DIR", str(override))

        assert paths.get_config_dir() == override.resolve()

    @pytest.mark.skipif(sys.platform == "win32", reason="Xcode locations")
    def test_default_profile_directories(self) -> None:
        directories = paths.get_default_profile_directories()

        assert directories == [
            Path.home() / "Library" / "Developer" / "Xcode" / "UserData" / "Provisioning Profiles",
            Path.home() / "Library" / "MobileDevice" / "Provisioning Profiles",
        ]

    def test_default_profile_directories_on_windows(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(paths.sys, "platform", "win32")
        monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))

        assert paths.get_default_profile_directories() == [tmp_path / "Xamarin" / "iOS" / "Provisioning" / "Profiles"]

    def test_profile_directories_are_not_created(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(paths.sys, "platform", "win32")
        monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))

        for directory in paths.get_default_profile_directories():
            assert not directory.exists()
