"""Provisioning profile queries.

Public Interface:
    - ProvisioningProfileQuery: Query service over an IndexHandle
    - ProfileCriteria: Generic query predicates
"""

from .filters import ProfileCriteria
from .filters import check_record
from .filters import normalize_thumbprints
from .service import ProvisioningProfileQuery

__all__ = [
    "ProfileCriteria",
    "ProvisioningProfileQuery",
    "check_record",
    "normalize_thumbprints",
]
