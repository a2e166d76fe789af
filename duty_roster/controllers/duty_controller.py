# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Duty schedule endpoints.
Thin HTTP layer — delegates ALL logic to the coordinator and DutyService.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from duty_roster.core.dependencies import get_coordinator, get_duty_service
from duty_roster.core.errors import ConfirmConflictError, PersistenceFailure
from duty_roster.models.domain import WeeklySchedule
from duty_roster.schemas.duty import (
    CommitResponse,
    DailyDutyRequest,
    DailyDutyResponse,
    PreviewResponse,
    ReminderResponse,
    TodayDutyResponse,
    WeeklyScheduleResponse,
)
from duty_roster.services.duty_service import DutyService
from duty_roster.services.schedule_coordinator import SchedulePreviewCoordinator

router = APIRouter(prefix="/api/v1/duty", tags=["Duty"])


# ── Weekly schedule ──

@router.post("/preview", response_model=PreviewResponse)
def preview_weekly_schedule(
    coordinator: SchedulePreviewCoordinator = Depends(get_coordinator),
):
    """Generate this week's schedule without storing anything."""
    try:
        return coordinator.preview_weekly_schedule()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/confirm", response_model=CommitResponse)
def confirm_weekly_schedule(
    schedule: WeeklySchedule,
    coordinator: SchedulePreviewCoordinator = Depends(get_coordinator),
):
    """Store a previewed schedule, update duty counts, announce it."""
    try:
        return coordinator.confirm(schedule).model_dump()
    except ConfirmConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/assign", response_model=CommitResponse)
def assign_weekly_schedule(
    coordinator: SchedulePreviewCoordinator = Depends(get_coordinator),
):
    """Generate and confirm in one call (scheduled weekly trigger)."""
    try:
        return coordinator.assign_weekly_schedule().model_dump()
    except ConfirmConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/weekly", response_model=WeeklyScheduleResponse)
def get_weekly_schedule(
    service: DutyService = Depends(get_duty_service),
):
    """The stored assignments for the current Monday-Sunday week."""
    try:
        return service.get_weekly_schedule()
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


# ── Daily duty ──

@router.get("/today", response_model=TodayDutyResponse)
def get_today_duty(
    service: DutyService = Depends(get_duty_service),
):
    """Who is on duty today."""
    try:
        return service.get_today_duty()
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/daily/{day}", response_model=DailyDutyResponse)
def assign_daily_duty(
    day: date,
    payload: DailyDutyRequest,
    service: DutyService = Depends(get_duty_service),
):
    """Manually put one or two members on duty for a single day."""
    try:
        return service.assign_daily_duty(day, payload.member_ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reminder", response_model=ReminderResponse)
def send_duty_reminder(
    service: DutyService = Depends(get_duty_service),
):
    """Remind today's duty pair on the team channel."""
    try:
        return service.send_duty_reminder()
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


# ── History ──

@router.get("/history")
def get_duty_history(
    event_type: Optional[str] = None,
    schedule_id: Optional[str] = None,
    limit: int = Query(default=None, ge=1, description="Max results"),
    service: DutyService = Depends(get_duty_service),
):
    """Audit log of previews, confirmations and manual assignments."""
    return service.get_history(event_type=event_type, schedule_id=schedule_id, limit=limit)


# ── Stats ──

@router.get("/stats")
def get_duty_stats(
    service: DutyService = Depends(get_duty_service),
):
    """Roster and scheduling statistics."""
    try:
        return service.get_stats()
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
