"""Status router for provisiond API.

Provides health check, status information and forced index rebuilds.
"""

import logging
import time
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from provisioning_library.cache import IndexHandle
from provisioning_library.cache import ProfileIndex

from ..dependencies import get_index_handle
from ..models import IndexStatusResponse
from ..models import ReconcileInfo
from ..models import StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["status"])

VERSION = "0.1.0"

# Track daemon start time for uptime calculation
_start_time = time.time()


def build_index_status(handle: IndexHandle, index: ProfileIndex) -> IndexStatusResponse:
    """Describe an index snapshot and the handle that produced it."""
    last_result = handle.last_result
    return IndexStatusResponse(
        version=index.version,
        last_modified=index.last_modified,
        record_count=len(index.records),
        cache_path=str(handle.cache_path),
        directories=[str(d) for d in handle.directories],
        last_result=ReconcileInfo.model_validate(last_result.to_dict()) if last_result else None,
    )


@router.get("/status", response_model=StatusResponse)
def get_status(
    handle: Annotated[IndexHandle, Depends(get_index_handle)],
) -> StatusResponse:
    """Get daemon status.

    Returns:
        Daemon status information including version, uptime, and index state
    """
    try:
        index = handle.snapshot()
    except Exception as exc:
        logger.error(f"Failed to open profile index: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    return StatusResponse(
        status="running",
        version=VERSION,
        uptime_seconds=time.time() - _start_time,
        index=build_index_status(handle, index),
    )


@router.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Simple health status
    """
    return {"status": "healthy"}


@router.post("/index/rebuild", response_model=IndexStatusResponse)
def rebuild_index(
    handle: Annotated[IndexHandle, Depends(get_index_handle)],
) -> IndexStatusResponse:
    """Discard the cached index and rebuild it from the profile directories.

    Returns:
        Status of the rebuilt index

    Raises:
        HTTPException: 500 if the rebuild fails
    """
    try:
        index = handle.rebuild()
    except Exception as exc:
        logger.error(f"Failed to rebuild profile index: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    return build_index_status(handle, index)
