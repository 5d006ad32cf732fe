"""API models for provisiond daemon.

This module defines response models for the REST API.
"""

from .responses import CertificateInfo
from .responses import IndexStatusResponse
from .responses import ProfileQueryResponse
from .responses import ProfileSummary
from .responses import ReconcileInfo
from .responses import StatusResponse

__all__ = [
    "CertificateInfo",
    "IndexStatusResponse",
    "ProfileQueryResponse",
    "ProfileSummary",
    "ReconcileInfo",
    "StatusResponse",
]
