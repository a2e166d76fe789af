# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from duty_roster.core.config import settings
from duty_roster.core.dependencies import get_history_repo, get_roster_repo
from duty_roster.core.errors import PersistenceFailure
from duty_roster.repositories.history_repository import HistoryRepository
from duty_roster.repositories.roster_repository import RosterRepository

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check(
    history_repo: HistoryRepository = Depends(get_history_repo),
):
    """Liveness probe for Docker and orchestration."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "events_count": history_repo.count(),
    }


@router.get("/health/ready")
def readiness_check(
    roster_repo: RosterRepository = Depends(get_roster_repo),
):
    """Readiness probe — the roster file must be readable."""
    try:
        members = len(roster_repo.load_candidate_pool())
    except PersistenceFailure as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": settings.SERVICE_NAME,
                "detail": str(e),
            },
        )
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "roster_members": members,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
