"""Shared dependency factories for FastAPI endpoints.

These factories provide dependency injection for the configured index
handle and the query service built on it.
"""

from typing import Annotated

from fastapi import Depends

from provisioning_library.cache import IndexHandle
from provisioning_library.cache import get_default_handle
from provisioning_library.config import ProvisioningSettings
from provisioning_library.config import load_config
from provisioning_library.query import ProvisioningProfileQuery


def get_settings() -> ProvisioningSettings:
    """Get daemon settings.

    Returns:
        ProvisioningSettings loaded from YAML and environment
    """
    return load_config()


def get_index_handle(
    settings: Annotated[ProvisioningSettings, Depends(get_settings)],
) -> IndexHandle:
    """Get the shared index handle for the configured cache file.

    Returns:
        IndexHandle instance
    """
    return get_default_handle(settings.get_profile_directories(), settings.get_cache_path())


def get_query_service(
    handle: Annotated[IndexHandle, Depends(get_index_handle)],
) -> ProvisioningProfileQuery:
    """Get profile query service.

    Returns:
        ProvisioningProfileQuery instance
    """
    return ProvisioningProfileQuery(handle)
