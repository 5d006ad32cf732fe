"""Settings models for provisiond.

This module defines the configuration structure for the profile index and
the daemon that serves it.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from ..storage.paths import get_default_profile_directories
from ..storage.paths import get_index_path


class ProvisioningSettings(BaseSettings):
    """Configuration for the provisioning profile index and daemon.

    Attributes:
        host: Listen address (default: 127.0.0.1)
        port: Listen port (default: 8421)
        log_level: Logging level (default: info)
        workers: Number of workers (default: 1)
        profile_directories: Directories watched for profiles (default: Xcode locations)
        cache_path: Index file location (default: $PROVISIOND_HOME/cache/...)

    Example:
        >>> settings = ProvisioningSettings()
        >>> assert settings.host == "127.0.0.1"
        >>> assert settings.port == 8421
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVISIOND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8421
    log_level: str = "info"
    workers: int = 1

    profile_directories: list[str] = []
    cache_path: str | None = None

    @field_validator("profile_directories")
    @classmethod
    def expand_directories(cls, v: list[str]) -> list[str]:
        """Expand ~ and resolve every profile directory to an absolute path.

        Args:
            v: Directory strings (may contain ~ or be relative)

        Returns:
            Absolute paths as strings
        """
        return [str(Path(d).expanduser().resolve()) for d in v]

    @field_validator("cache_path")
    @classmethod
    def expand_cache_path(cls, v: str | None) -> str | None:
        """Expand ~ and resolve the cache path, treating "" as unset."""
        if not v:
            return None
        return str(Path(v).expanduser().resolve())

    def get_profile_directories(self) -> list[Path]:
        """Configured profile directories, or the platform defaults when none are set."""
        if self.profile_directories:
            return [Path(d) for d in self.profile_directories]
        return get_default_profile_directories()

    def get_cache_path(self) -> Path:
        """Configured index file, or the default per-user location."""
        if self.cache_path:
            return Path(self.cache_path)
        return get_index_path()
