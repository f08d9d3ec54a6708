"""
PawCare Backend — Health Check Route
======================================

What:  Liveness/readiness check for Docker and load balancers.
How:   Pings the active storage backend with SELECT 1 and reports the
       notification counters kept by the dispatcher.

Status levels:
    ok:        storage answers (HTTP 200)
    degraded:  storage unreachable (HTTP 503, stop routing traffic)

Notification failures never change the status; they are reported as a
counter for monitoring to alert on.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request, Response

from pawcare import __version__
from pawcare.dependencies import get_notifier, get_storage
from pawcare.schemas.common import HealthResponse
from pawcare.services.notification_service import NotificationDispatcher
from pawcare.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    request: Request,
    response: Response,
    storage: StorageAdapter = Depends(get_storage),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> HealthResponse:
    if await storage.ping():
        status, message, database = "ok", "PawCare API is running", "connected"
    else:
        status, message, database = "degraded", "PawCare API is running without storage", "disconnected"
        response.status_code = 503
        logger.warning("Health check: %s storage unreachable", storage.backend_name)

    return HealthResponse(
        status=status,
        message=message,
        version=__version__,
        database=f"{storage.backend_name}: {database}",
        notifications_sent=notifier.sent,
        notification_failures=notifier.failures,
        uptime_seconds=round(time.time() - request.app.state.start_time, 2),
    )
