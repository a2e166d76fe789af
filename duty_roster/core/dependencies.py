# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

import random

from duty_roster.core.config import settings
from duty_roster.repositories.history_repository import HistoryRepository
from duty_roster.repositories.roster_repository import RosterRepository
from duty_roster.services.duty_ledger import DutyCounterLedger
from duty_roster.services.duty_service import DutyService
from duty_roster.services.notification_client import NotificationClient
from duty_roster.services.schedule_coordinator import SchedulePreviewCoordinator
from duty_roster.services.weighted_selector import WeightedSelector

# ── Singleton repository instances ──
_roster_repo = RosterRepository()
_history_repo = HistoryRepository()
_notification_client = NotificationClient()
_ledger = DutyCounterLedger(_roster_repo)

# ── Service instances (with injected dependencies) ──
_coordinator = SchedulePreviewCoordinator(
    roster_repo=_roster_repo,
    history_repo=_history_repo,
    ledger=_ledger,
    notification_client=_notification_client,
    selector=WeightedSelector(random.Random(settings.RANDOM_SEED)),
)
_duty_service = DutyService(
    roster_repo=_roster_repo,
    history_repo=_history_repo,
    ledger=_ledger,
    notification_client=_notification_client,
)


# ── FastAPI dependency functions ──
def get_coordinator() -> SchedulePreviewCoordinator:
    return _coordinator


def get_duty_service() -> DutyService:
    return _duty_service


def get_roster_repo() -> RosterRepository:
    return _roster_repo


def get_history_repo() -> HistoryRepository:
    return _history_repo
