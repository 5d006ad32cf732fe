"""Storage layer for provisioning_library.

Resolves where provisiond keeps its own files and where provisioning
profiles are installed.

Public Interface:
    - get_home_dir: Get PROVISIOND_HOME root
    - get_config_dir: Get configuration directory
    - get_cache_dir: Get cache directory
    - get_index_path: Get the default index file
    - get_default_profile_directories: Get the platform profile directories
"""

from .paths import INDEX_FILE_NAME
from .paths import get_cache_dir
from .paths import get_config_dir
from .paths import get_default_profile_directories
from .paths import get_home_dir
from .paths import get_index_path

__all__ = [
    "INDEX_FILE_NAME",
    "get_home_dir",
    "get_config_dir",
    "get_cache_dir",
    "get_index_path",
    "get_default_profile_directories",
]
