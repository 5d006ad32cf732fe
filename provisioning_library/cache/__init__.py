"""Persistent index of installed provisioning profiles.

This module provides all cache functionality for provisioning profiles:
- Binary index storage and retrieval
- Reconciliation with the profile directories
- Thread-safe shared handles

Architecture: All business logic in library, daemon provides thin HTTP wrappers.
"""

# Handles
from .handle import IndexHandle
from .handle import get_default_handle
from .handle import open_or_build_index
from .handle import reset_default_handles

# Persistence
from .index_store import decode_index
from .index_store import encode_index
from .index_store import load_index
from .index_store import save_index

# Models
from .models import INDEX_VERSION
from .models import DeveloperCertificate
from .models import ProfileIndex
from .models import ProfileRecord
from .models import ReconcileResult

# Reconciliation
from .reconcile import IndexReconciler
from .reconcile import scan_profile_directories

__all__ = [
    # Handles
    "IndexHandle",
    "get_default_handle",
    "open_or_build_index",
    "reset_default_handles",
    # Persistence
    "encode_index",
    "decode_index",
    "load_index",
    "save_index",
    # Models
    "INDEX_VERSION",
    "DeveloperCertificate",
    "ProfileIndex",
    "ProfileRecord",
    "ReconcileResult",
    # Reconciliation
    "IndexReconciler",
    "scan_profile_directories",
]
