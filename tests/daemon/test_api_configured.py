"""
Integration tests for the daemon as configured from the environment.

Runs the application lifespan and the real dependency chain, with no
overrides, against a temporary home and profile directory.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from provisioning_library.cache import get_default_handle
from provisiond.main import app


@pytest.fixture
def configured_env(mock_storage_env: Path, profile_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("PROVISIOND_PROFILE_DIRECTORIES", f'["{profile_dir}"]')
    return mock_storage_env


@pytest.mark.integration
class TestConfiguredDaemon:
    """Test startup warm-up and requests through the default handle."""

    def test_status_and_query_use_configured_index(
        self, configured_env: Path, profile_writer, profile_dir: Path
    ) -> None:
        profile_writer.write(profile_dir, name="Dev", profile_uuid="DEV-UUID")

        with TestClient(app) as client:
            status = client.get("/api/v1/status")
            profiles = client.get("/api/v1/profiles", params={"platform": "iOS"})

        assert status.status_code == 200
        index = status.json()["index"]
        assert index["recordCount"] == 1
        assert index["directories"] == [str(profile_dir.resolve())]
        assert index["cachePath"] == str(configured_env.resolve() / "cache" / "Provisioning Profiles.index")
        # Warm-up at startup already built the index
        assert index["lastResult"]["mode"] == "cached"

        assert profiles.status_code == 200
        assert [p["uuid"] for p in profiles.json()["profiles"]] == ["DEV-UUID"]

    def test_startup_persists_index(self, configured_env: Path, profile_writer, profile_dir: Path) -> None:
        profile_writer.write(profile_dir)

        with TestClient(app):
            handle = get_default_handle()

        assert handle.current is not None
        assert handle.cache_path.exists()
