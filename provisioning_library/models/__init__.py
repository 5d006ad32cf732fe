"""Domain models shared by the loader, the index and the query engine."""

from .provisioning import DESKTOP_PROFILE_EXTENSION
from .provisioning import MOBILE_PROFILE_EXTENSION
from .provisioning import PROFILE_EXTENSIONS
from .provisioning import DistributionType
from .provisioning import Platform

__all__ = [
    "DESKTOP_PROFILE_EXTENSION",
    "MOBILE_PROFILE_EXTENSION",
    "PROFILE_EXTENSIONS",
    "DistributionType",
    "Platform",
]
