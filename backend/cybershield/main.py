import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cybershield.api.v1.routes_health import router as health_router
from cybershield.api.v1.routes_alerts import router as alerts_router
from cybershield.api.v1.routes_analyze import router as analyze_router
from cybershield.api.v1.routes_honeypot import router as honeypot_router
from cybershield.api.v1.routes_live import router as live_router

from cybershield.core.config import settings
from cybershield.core.errors import CyberShieldError
from cybershield.services.honeypot.honeypot_simulator import honeypot_simulator
from cybershield.services.notifications.notifier import notifier
from cybershield.services.notifications.stats_publisher import stats_publisher

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="CyberShield Dashboard API",
    version="0.1.0",
    description="Synthetic attack ingestion, alert correlation and live updates for the SOC dashboard.",
)


@app.exception_handler(CyberShieldError)
async def cybershield_error_handler(request: Request, exc: CyberShieldError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
    )


@app.on_event("startup")
async def on_startup() -> None:
    if settings.HONEYPOT_ENABLED:
        honeypot_simulator.start()
    stats_publisher.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await honeypot_simulator.stop()
    await stats_publisher.stop()
    notifier.close_all()


@app.get("/", tags=["root"])
async def root() -> dict:
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


# API v1
app.include_router(health_router, prefix="/api/v1")
app.include_router(alerts_router, prefix="/api/v1")
app.include_router(analyze_router, prefix="/api/v1")
app.include_router(honeypot_router, prefix="/api/v1")
app.include_router(live_router, prefix="/api/v1")
