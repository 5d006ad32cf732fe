"""API routers for provisiond daemon.

This module contains FastAPI routers for all API endpoints.
"""

from .profiles import router as profiles_router
from .status import router as status_router

__all__ = [
    "profiles_router",
    "status_router",
]
