# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error taxonomy for the duty roster.
Fatal errors subclass the builtin families the controllers already map
(ValueError -> 400, RuntimeError -> 409/500). Degradations are warning
classes: they are logged and reported on the schedule, never raised.
"""

from typing import Optional


class InsufficientMembersError(ValueError):
    """The roster has fewer members than a duty pair needs."""

    def __init__(self, available: int, required: int = 2) -> None:
        self.available = available
        self.required = required
        super().__init__(
            f"At least {required} team members are required to build a duty "
            f"schedule ({available} available)"
        )


class PersistenceFailure(RuntimeError):
    """The roster store could not be read or written."""


class ConfirmConflictError(RuntimeError):
    """A confirm request collides with another confirm."""


class ConfirmInProgressError(ConfirmConflictError):
    def __init__(self) -> None:
        super().__init__("Another confirmation is already in progress")


class ScheduleAlreadyConfirmedError(ConfirmConflictError):
    def __init__(self, schedule_id: str, week_key: Optional[str] = None) -> None:
        self.schedule_id = schedule_id
        self.week_key = week_key
        if week_key:
            message = f"A schedule for week {week_key} has already been confirmed"
        else:
            message = f"Schedule '{schedule_id}' has already been confirmed"
        super().__init__(message)


class NoAuthorizedMembersWarning(UserWarning):
    code = "no_authorized_members"


class ConstraintSolverExhausted(UserWarning):
    code = "constraint_solver_exhausted"
