# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Roster file data access.
The roster lives in one JSON document shared with the rest of the team
tooling, so unknown keys (on the document and on member records) are kept
as-is. Every write replaces the whole file atomically.
NO business rules here — pure load / save.
"""

import json
import os
import tempfile
import threading
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from duty_roster.core.config import settings
from duty_roster.core.errors import PersistenceFailure
from duty_roster.core.logging import get_logger
from duty_roster.models.domain import CandidatePool, TeamMember

logger = get_logger(__name__)

# Friday, Saturday, Sunday
WEEKEND_BLOCK_WEEKDAYS = (4, 5, 6)


def _default_document() -> dict[str, Any]:
    return {
        "teamMembers": [],
        "dailyDutySchedule": {},
        "confirmedSchedules": [],
        "confirmedWeeks": [],
    }


class RosterRepository:
    """JSON-file roster storage."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self._path = Path(path or settings.ROSTER_FILE)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    # ── Raw document ──

    def load(self) -> dict[str, Any]:
        """Read the whole document; a missing file reads as an empty roster."""
        with self._lock:
            if not self._path.exists():
                return _default_document()
            try:
                with self._path.open(encoding="utf-8") as fh:
                    document = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("Roster file %s unreadable: %s", self._path, exc)
                raise PersistenceFailure(f"Roster file could not be read: {exc}") from exc

            if not isinstance(document, dict):
                raise PersistenceFailure("Roster file must contain a JSON object")
            for key, value in _default_document().items():
                document.setdefault(key, value)
            return document

    def save(self, document: Mapping[str, Any]) -> None:
        """Write the document through a temp file + rename so readers never see half a file."""
        with self._lock:
            directory = self._path.parent
            tmp_name = None
            try:
                directory.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=directory,
                    prefix=f".{self._path.name}.",
                    suffix=".tmp",
                    delete=False,
                ) as fh:
                    tmp_name = fh.name
                    json.dump(document, fh, ensure_ascii=False, indent=2)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self._path)
            except (OSError, TypeError, ValueError) as exc:
                if tmp_name and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                logger.error("Roster file %s write failed: %s", self._path, exc)
                raise PersistenceFailure(f"Roster file could not be written: {exc}") from exc
            logger.debug("Roster file saved: %s", self._path)

    # ── Read ──

    def load_candidate_pool(self) -> CandidatePool:
        document = self.load()
        try:
            return CandidatePool(
                members=tuple(
                    TeamMember.model_validate(record) for record in document["teamMembers"]
                )
            )
        except ValidationError as exc:
            raise PersistenceFailure(f"Roster file holds invalid team members: {exc}") from exc

    def get_daily_assignment(self, day: date) -> Optional[dict[str, Any]]:
        return self.load()["dailyDutySchedule"].get(day.isoformat())

    def get_daily_assignments(self, days: Iterable[date]) -> dict[str, dict[str, Any]]:
        schedule = self.load()["dailyDutySchedule"]
        keys = [d.isoformat() for d in days]
        return {k: schedule[k] for k in keys if k in schedule}

    def load_recent_weekend_history(self, weeks: int, today: date) -> frozenset[str]:
        """Ids of everyone who staffed a Friday, Saturday or Sunday in the last ``weeks`` weeks."""
        schedule = self.load()["dailyDutySchedule"]
        recent: set[str] = set()
        for offset in range(weeks * 7):
            day = today - timedelta(days=offset)
            if day.weekday() not in WEEKEND_BLOCK_WEEKDAYS:
                continue
            entry = schedule.get(day.isoformat())
            if entry and entry.get("members"):
                recent.update(entry["members"])
        return frozenset(recent)

    def is_confirmed(self, schedule_id: str) -> bool:
        return schedule_id in self.load()["confirmedSchedules"]

    def is_week_confirmed(self, week_start: date) -> bool:
        """True once any schedule for the week starting ``week_start`` was committed."""
        return week_start.isoformat() in self.load()["confirmedWeeks"]

    def count_confirmed(self) -> int:
        return len(self.load()["confirmedSchedules"])

    # ── Write ──

    def persist_daily_assignment(self, day: date, member_ids: Iterable[str]) -> None:
        with self._lock:
            document = self.load()
            self._set_day(document, day.isoformat(), list(member_ids))
            self.save(document)

    def persist_duty_counters(self, members: Iterable[TeamMember]) -> None:
        """Write the duty counts of the given members, leaving other fields untouched."""
        with self._lock:
            document = self.load()
            counts = {m.id: m.duty_count for m in members}
            for record in document["teamMembers"]:
                if record.get("id") in counts:
                    record["dutyCount"] = counts[record["id"]]
            self.save(document)

    def commit_week(
        self,
        schedule_id: Optional[str],
        assignments: Mapping[str, list[str]],
        deltas: Mapping[str, int],
        week_start: Optional[date] = None,
    ) -> dict[str, int]:
        """
        Store daily assignments and apply duty-count deltas in a single write.
        A confirmed schedule also records its id and the Monday of its week.
        Returns the resulting duty counts of the touched members.
        """
        with self._lock:
            document = self.load()
            for day_key, member_ids in assignments.items():
                self._set_day(document, day_key, list(member_ids))

            updated: dict[str, int] = {}
            for record in document["teamMembers"]:
                member_id = record.get("id")
                if member_id in deltas:
                    record["dutyCount"] = int(record.get("dutyCount") or 0) + deltas[member_id]
                    updated[member_id] = record["dutyCount"]

            self._prune_stale_assignments(document)

            if schedule_id is not None:
                confirmed = document["confirmedSchedules"]
                confirmed.append(schedule_id)
                del confirmed[: max(0, len(confirmed) - settings.MAX_CONFIRMED_IDS)]
            if week_start is not None:
                weeks = document["confirmedWeeks"]
                weeks.append(week_start.isoformat())
                del weeks[: max(0, len(weeks) - settings.MAX_CONFIRMED_IDS)]

            self.save(document)
            return updated

    # ── Internal ──

    @staticmethod
    def _set_day(document: dict[str, Any], day_key: str, member_ids: list[str]) -> None:
        document["dailyDutySchedule"][day_key] = {
            "members": member_ids,
            "assignedAt": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def _prune_stale_assignments(document: dict[str, Any]) -> int:
        """Drop ids of members no longer on the roster; remove days left empty."""
        current_ids = {record.get("id") for record in document["teamMembers"]}
        schedule = document["dailyDutySchedule"]
        cleaned = 0
        for day_key in list(schedule):
            entry = schedule[day_key] or {}
            members = entry.get("members") or []
            kept = [m for m in members if m in current_ids]
            if len(kept) == len(members):
                continue
            cleaned += 1
            logger.info(
                "Pruned stale duty members for %s: %s",
                day_key, ", ".join(m for m in members if m not in current_ids),
            )
            if kept:
                entry["members"] = kept
            else:
                del schedule[day_key]
        return cleaned
