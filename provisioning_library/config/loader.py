"""Configuration loading for provisiond.

Settings resolve in three layers: field defaults, then ``provisiond.yaml``
in the config directory, then ``PROVISIOND_*`` environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..storage.paths import get_config_dir
from .settings import ProvisioningSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROVISIOND_"

DEFAULT_CONFIG = """# provisiond configuration

# Server settings
host: "127.0.0.1"
port: 8421
log_level: "info"
workers: 1

# Directories scanned for .mobileprovision / .provisionprofile files.
# Default: the Xcode profile directories for the current user.
# Can be overridden with PROVISIOND_PROFILE_DIRECTORIES='["/path/a", "/path/b"]'
# profile_directories:
#   - "~/Library/Developer/Xcode/UserData/Provisioning Profiles"
#   - "~/Library/MobileDevice/Provisioning Profiles"

# Index cache file.
# Default: $PROVISIOND_HOME/cache/Provisioning Profiles.index
# cache_path: "~/.provisiond/cache/Provisioning Profiles.index"
"""


def get_config_path() -> Path:
    """Location of provisiond.yaml in the config directory."""
    return get_config_dir() / "provisiond.yaml"


def create_default_config() -> None:
    """Write the commented default config unless a config file already exists."""
    config_path = get_config_path()
    if config_path.exists():
        return

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Created default config: {config_path}")


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Read the YAML mapping in config_path.

    A missing file yields no settings. An unreadable file, invalid YAML or a
    document that is not a mapping is logged and also yields no settings.
    """
    if not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring config file {config_path}: {e}")
        return {}

    if not isinstance(document, dict):
        logger.warning(f"Ignoring config file {config_path}: expected a mapping, got {type(document).__name__}")
        return {}

    logger.debug(f"Loaded config from {config_path}")
    return document


def load_config(config_path: Path | None = None) -> ProvisioningSettings:
    """Load settings from YAML and environment.

    Args:
        config_path: Config file to read (default: provisiond.yaml, created
            with commented defaults when missing)

    Returns:
        Validated settings
    """
    if config_path is None:
        config_path = get_config_path()
        create_default_config()

    # Keys set in the environment are left to pydantic-settings
    file_settings = {
        key: value
        for key, value in read_config_file(config_path).items()
        if f"{ENV_PREFIX}{str(key).upper()}" not in os.environ
    }

    settings = ProvisioningSettings(**file_settings)
    logger.debug(
        f"Configuration loaded: port={settings.port}, "
        f"{len(settings.get_profile_directories())} profile directories, cache_path={settings.get_cache_path()}"
    )
    return settings
