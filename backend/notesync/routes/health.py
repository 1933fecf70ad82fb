"""
NoteSync Backend: Health Check Route
====================================

What:  Health check endpoint for monitoring and container probes.
How:   Probes both collaborators through their health_check() coroutines.

Status levels:
    - healthy:   record store and blob store both reachable (HTTP 200)
    - unhealthy: either store unreachable (HTTP 503)
"""

import asyncio
import logging
import time

from fastapi import APIRouter, Depends, Response

from notesync import __version__
from notesync.schemas.note import HealthResponse
from notesync.services.note_synchronizer import NoteSynchronizer
from notesync.routes.deps import get_synchronizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    synchronizer: NoteSynchronizer = Depends(get_synchronizer),
) -> HealthResponse:
    record_ok, blob_ok = await asyncio.gather(
        synchronizer.record_store.health_check(),
        synchronizer.blob_store.health_check(),
    )

    overall = "healthy" if record_ok and blob_ok else "unhealthy"
    if overall != "healthy":
        response.status_code = 503
        logger.warning(
            "Health check failed: record_store=%s blob_store=%s", record_ok, blob_ok
        )

    return HealthResponse(
        status=overall,
        version=__version__,
        record_store="available" if record_ok else "unavailable",
        blob_store="available" if blob_ok else "unavailable",
        notes_loaded=synchronizer.note_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
