# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Duty Roster Service
===================
Builds the team's weekly duty-pair schedule, lets a human preview and
confirm it, keeps per-member duty counts and announces the result on the
team chat channel.

Port: 8005
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from duty_roster.controllers import duty_controller, system_controller
from duty_roster.core.config import settings
from duty_roster.core.dependencies import get_roster_repo
from duty_roster.core.logging import get_logger
from duty_roster.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Log startup and shutdown."""
    logger.info(
        "Duty roster service starting: roster=%s, timezone=%s, channel=%s",
        get_roster_repo().path,
        settings.TIMEZONE,
        "webhook" if settings.CHANNEL_WEBHOOK_URL else "mock",
    )
    yield
    logger.info("Duty roster service shutting down")


app = FastAPI(
    title="Duty Roster Service",
    description="Weekly duty-pair scheduling with preview, confirmation and announcements.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


app.include_router(system_controller.router)
app.include_router(duty_controller.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
