from fastapi import APIRouter, Depends

from cybershield.api.deps import get_notifier
from cybershield.core.config import settings
from cybershield.services.notifications.notifier import Notifier

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check(live: Notifier = Depends(get_notifier)) -> dict:
    """
    Simple liveness / readiness check.
    """
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "live_subscribers": live.active_count,
    }
