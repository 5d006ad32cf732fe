"""Provisioning profile library.

This is the business logic layer behind provisiond: it keeps a persistent
index of installed Apple provisioning profiles and answers queries from it.

Public Interface:
    Modules:
    - storage: Default file locations
    - config: Configuration loading
    - models: Platform and distribution types
    - profiles: Full profile decoding
    - cache: Index persistence, reconciliation and handles
    - query: Profile queries over an index handle
"""

# Re-export key types for convenience
from .cache import IndexHandle
from .cache import get_default_handle
from .cache import open_or_build_index
from .errors import InvalidQueryError
from .errors import ProfileFormatError
from .errors import ProvisioningError
from .models import DistributionType
from .models import Platform
from .profiles import MobileProvision
from .query import ProfileCriteria
from .query import ProvisioningProfileQuery

__all__ = [
    "DistributionType",
    "IndexHandle",
    "InvalidQueryError",
    "MobileProvision",
    "Platform",
    "ProfileCriteria",
    "ProfileFormatError",
    "ProvisioningError",
    "ProvisioningProfileQuery",
    "get_default_handle",
    "open_or_build_index",
]
