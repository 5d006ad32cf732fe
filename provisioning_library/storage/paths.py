"""Path resolution for provisioning storage locations.

This module provides path resolution based on the PROVISIOND_HOME environment
variable, following an XDG-like directory structure within that root, plus
the well-known locations where Xcode installs provisioning profiles.

Contract:
- Inputs: Environment variables (PROVISIOND_HOME, PROVISIOND_*_DIR)
- Outputs: Resolved Path objects
- Side Effects: Creates provisiond's own directories if they don't exist
  (profile directories are never created)
"""

import os
import sys
from pathlib import Path

INDEX_FILE_NAME = "Provisioning Profiles.index"


def get_home_dir() -> Path:
    """Get PROVISIOND_HOME from environment.

    Returns:
        Path to root directory (default: ~/.provisiond)
    """
    root = os.environ.get("PROVISIOND_HOME", "~/.provisiond")
    return Path(root).expanduser().resolve()


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($PROVISIOND_HOME/config)
    """
    config_dir: Path = get_home_dir() / "config"

    env_override: str | None = os.environ.get("PROVISIOND_CONFIG_DIR")
    if env_override is not None:
        config_dir = Path(env_override).expanduser().resolve()

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_cache_dir() -> Path:
    """Get cache directory.

    Returns:
        Path to cache directory ($PROVISIOND_HOME/cache)
    """
    cache_dir: Path = get_home_dir() / "cache"

    env_override: str | None = os.environ.get("PROVISIOND_CACHE_DIR")
    if env_override is not None:
        cache_dir = Path(env_override).expanduser().resolve()

    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def get_index_path() -> Path:
    """Get the default provisioning profile index file.

    Returns:
        Path to the index file ($PROVISIOND_HOME/cache/Provisioning Profiles.index)
    """
    return get_cache_dir() / INDEX_FILE_NAME


def get_default_profile_directories() -> list[Path]:
    """Get the directories Xcode installs provisioning profiles into.

    Newer Xcode releases keep profiles under ~/Library/Developer/Xcode/UserData,
    older ones under ~/Library/MobileDevice; both are watched, newest first.

    Returns:
        Ordered list of profile directories (they may not exist)
    """
    if sys.platform == "win32":
        local_app_data = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return [Path(local_app_data) / "Xamarin" / "iOS" / "Provisioning" / "Profiles"]

    library = Path.home() / "Library"
    return [
        library / "Developer" / "Xcode" / "UserData" / "Provisioning Profiles",
        library / "MobileDevice" / "Provisioning Profiles",
    ]
