# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the duty scheduling engine: week window, weighted selection,
weekend pair, weekday solver, preview / confirm coordinator, roster store,
announcements and the notification client.
"""

import json
import random
from collections import Counter
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from duty_roster.core.errors import (
    ConfirmInProgressError,
    InsufficientMembersError,
    PersistenceFailure,
    ScheduleAlreadyConfirmedError,
)
from duty_roster.models.domain import DAY_LABELS, CandidatePool, TeamMember
from duty_roster.repositories.history_repository import HistoryRepository
from duty_roster.repositories.roster_repository import RosterRepository
from duty_roster.services.announcement import (
    format_members,
    render_confirmation_message,
    render_preview_message,
    render_reminder_message,
)
from duty_roster.services.duty_ledger import DutyCounterLedger
from duty_roster.services.notification_client import NotificationClient
from duty_roster.services.schedule_coordinator import SchedulePreviewCoordinator
from duty_roster.services.week_window import current_week, display_date, week_key
from duty_roster.services.weekday_solver import (
    WeekdayAssignmentSolver,
    can_assign,
    fallback_slots,
)
from duty_roster.services.weekend_selector import WeekendAssignmentSelector
from duty_roster.services.weighted_selector import (
    WeightedSelector,
    fairness_weights,
    scaled,
)

# Monday 2026-10-19 .. Sunday 2026-10-25
WEDNESDAY = datetime(2026, 10, 21, 10, 0)


def member(member_id, authorized=False, count=0):
    return TeamMember(
        id=member_id,
        name=member_id.upper(),
        is_authorized=authorized,
        duty_count=count,
    )


def abcd_pool():
    return CandidatePool(members=(
        member("a", authorized=True),
        member("b", authorized=True),
        member("c"),
        member("d"),
    ))


def six_pool():
    return CandidatePool(members=(
        member("a", authorized=True, count=3),
        member("b", authorized=True, count=1),
        member("c", count=0),
        member("d", count=2),
        member("e", count=5),
        member("f", count=1),
    ))


def write_roster(path, members, **extra):
    document = {
        "teamMembers": [
            {
                "id": m.id,
                "name": m.name,
                "isAuthorized": m.is_authorized,
                "dutyCount": m.duty_count,
            }
            for m in members
        ],
        "dailyDutySchedule": {},
        "confirmedSchedules": [],
    }
    document.update(extra)
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def make_coordinator(roster_repo=None, notifier=None, seed=7, history=None):
    roster_repo = roster_repo or MagicMock()
    notifier = notifier or MagicMock()
    notifier.send_announcement.return_value = True
    return SchedulePreviewCoordinator(
        roster_repo=roster_repo,
        history_repo=history or HistoryRepository(),
        ledger=DutyCounterLedger(roster_repo),
        notification_client=notifier,
        selector=WeightedSelector(random.Random(seed)),
        tz_name="Asia/Seoul",
    )


def with_members(schedule, **members_by_label):
    """Copy of ``schedule`` with the members of some days replaced."""
    days = list(schedule.days)
    for label, members in members_by_label.items():
        index = DAY_LABELS.index(label)
        days[index] = days[index].model_copy(update={"members": tuple(members)})
    return schedule.model_copy(update={"days": tuple(days)})


def weekday_ids(schedule):
    return [set(schedule.day(label).member_ids) for label in ("Mon", "Tue", "Wed", "Thu")]


# ============================================
# Week window
# ============================================
class TestWeekWindow:
    def test_midweek_maps_to_monday_through_sunday(self):
        week = current_week(WEDNESDAY, "Asia/Seoul")
        assert [label for _, label in week] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert week[0][0] == date(2026, 10, 19)
        assert week[-1][0] == date(2026, 10, 25)

    def test_sunday_closes_the_current_week(self):
        week = current_week(datetime(2026, 10, 25, 23, 59), "Asia/Seoul")
        assert week[0][0] == date(2026, 10, 19)

    def test_monday_starts_a_new_week(self):
        week = current_week(datetime(2026, 10, 26, 0, 0), "Asia/Seoul")
        assert week[0][0] == date(2026, 10, 26)

    def test_aware_datetime_converted_to_local_zone(self):
        # Sunday 16:00 UTC is already Monday 01:00 in Seoul.
        week = current_week(datetime(2026, 10, 25, 16, 0, tzinfo=timezone.utc), "Asia/Seoul")
        assert week[0][0] == date(2026, 10, 26)

    def test_dates_are_consecutive(self):
        dates = [d for d, _ in current_week(WEDNESDAY, "Asia/Seoul")]
        assert all((b - a).days == 1 for a, b in zip(dates, dates[1:]))

    def test_week_key_and_display_date(self):
        dates = [d for d, _ in current_week(WEDNESDAY, "Asia/Seoul")]
        assert week_key(dates) == "10/19~10/25"
        assert display_date(date(2026, 1, 5)) == "1/5"


# ============================================
# Weighted selector
# ============================================
class TestWeightedSelector:
    def test_empty_candidates(self):
        assert WeightedSelector(random.Random(1)).select([]) is None

    def test_single_candidate_returned_without_draw(self):
        rng = MagicMock()
        only = member("a")
        assert WeightedSelector(rng).select([only]) is only
        rng.random.assert_not_called()

    def test_fairness_weights(self):
        candidates = [member("a", count=0), member("b", count=10)]
        assert fairness_weights(candidates) == [11, 1]
        assert scaled(2)(candidates) == [22, 2]

    def test_weights_never_zero(self):
        candidates = [member("a", count=4), member("b", count=4)]
        assert fairness_weights(candidates) == [1, 1]

    def test_threshold_walk(self):
        rng = MagicMock()
        low, high = member("low", count=0), member("high", count=10)
        selector = WeightedSelector(rng)

        rng.random.return_value = 0.0
        assert selector.select([low, high]) is low
        rng.random.return_value = 0.999
        assert selector.select([low, high]) is high

    def test_chance(self):
        rng = MagicMock()
        rng.random.return_value = 0.5
        selector = WeightedSelector(rng)
        assert selector.chance(0.7) is True
        assert selector.chance(0.3) is False

    def test_same_seed_same_choices(self):
        pool = list(six_pool().members)
        s1, s2 = WeightedSelector(random.Random(42)), WeightedSelector(random.Random(42))
        assert [s1.select(pool).id for _ in range(20)] == [s2.select(pool).id for _ in range(20)]


# ============================================
# Weekend pair
# ============================================
class TestWeekendSelector:
    def test_recent_weekend_staff_skipped(self):
        pool = abcd_pool().members
        for seed in range(100):
            selector = WeekendAssignmentSelector(WeightedSelector(random.Random(seed)))
            first = selector.select_first(pool, frozenset({"a", "c"}))
            assert first.id in {"b", "d"}

    def test_everyone_recent_falls_back_to_full_pool(self):
        pool = abcd_pool().members
        selector = WeekendAssignmentSelector(WeightedSelector(random.Random(3)))
        first = selector.select_first(pool, frozenset({"a", "b", "c", "d"}))
        assert first is not None

    def test_second_is_authorized_when_first_is_not(self):
        pool = abcd_pool().members
        for seed in range(200):
            selector = WeekendAssignmentSelector(WeightedSelector(random.Random(seed)))
            first, second = selector.select_pair(pool)
            assert first.id != second.id
            if not first.is_authorized:
                assert second.is_authorized

    def test_second_missing_with_single_member(self):
        selector = WeekendAssignmentSelector(WeightedSelector(random.Random(1)))
        first, second = selector.select_pair([member("a")])
        assert first.id == "a"
        assert second is None

    def test_empty_pool_rejected(self):
        selector = WeekendAssignmentSelector(WeightedSelector(random.Random(1)))
        with pytest.raises(ValueError):
            selector.select_pair([])

    def test_equal_counts_give_even_weekend_spread(self):
        pool = [member("a"), member("b"), member("c"), member("d")]
        selector = WeekendAssignmentSelector(WeightedSelector(random.Random(2026)))
        picks = Counter(selector.select_first(pool).id for _ in range(2000))
        for member_id in "abcd":
            assert 400 <= picks[member_id] <= 600

    def test_low_duty_count_preferred(self):
        pool = [member("low", count=0), member("high", count=10)]
        selector = WeekendAssignmentSelector(WeightedSelector(random.Random(11)))
        picks = Counter(selector.select_first(pool).id for _ in range(1000))
        assert picks["low"] > picks["high"] * 5


# ============================================
# Weekday solver
# ============================================
class TestWeekdaySolver:
    def test_can_assign_checks_neighbours(self):
        a, b, c, d = abcd_pool().members
        slots = ((a, b), (c, d))
        assert can_assign(a, 1, slots) is False
        assert can_assign(c, 0, slots) is False
        assert can_assign(a, 2, slots) is True
        assert can_assign(c, 2, slots) is False

    def test_fallback_with_two_members(self):
        a, b = member("a"), member("b")
        slots = fallback_slots([a, b])
        assert [tuple(m.id for m in s) for s in slots] == [
            ("a", "b"), ("b", "a"), ("a", "b"), ("b", "a"),
        ]

    def test_fallback_sorted_by_duty_count(self):
        slots = fallback_slots([member("x", count=5), member("y", count=0), member("z", count=2)])
        assert [tuple(m.id for m in s) for s in slots] == [
            ("y", "z"), ("z", "x"), ("x", "y"), ("y", "z"),
        ]

    def test_fallback_with_single_member(self):
        slots = fallback_slots([member("solo")])
        assert all(len(s) == 1 for s in slots)

    def test_two_members_exhaust_attempts(self):
        solver = WeekdayAssignmentSolver(WeightedSelector(random.Random(5)), max_attempts=50)
        plan = solver.solve([member("a", authorized=True), member("b")])
        assert plan.fallback_used is True
        assert plan.attempts == 50
        assert len(plan.slots) == 4
        assert all(len(s) == 2 for s in plan.slots)

    def test_solution_respects_adjacency(self):
        pool = six_pool().members
        for seed in range(50):
            solver = WeekdayAssignmentSolver(WeightedSelector(random.Random(seed)))
            plan = solver.solve(pool)
            assert plan.fallback_used is False
            ids = [{m.id for m in s} for s in plan.slots]
            for today_ids, tomorrow_ids in zip(ids, ids[1:]):
                assert not today_ids & tomorrow_ids

    def test_every_pair_has_authorized_member(self):
        pool = six_pool().members
        for seed in range(50):
            solver = WeekdayAssignmentSolver(WeightedSelector(random.Random(seed)))
            plan = solver.solve(pool)
            assert all(any(m.is_authorized for m in s) for s in plan.slots)

    def test_attempt_fails_when_too_few_eligible(self):
        solver = WeekdayAssignmentSolver(WeightedSelector(random.Random(1)))
        assert solver.attempt([member("a"), member("b"), member("c")]) is None

    def test_single_authorized_member_builds_without_fallback(self):
        pool = [member("lead", authorized=True)] + [member(i) for i in "wxyz"]
        for seed in range(100):
            solver = WeekdayAssignmentSolver(WeightedSelector(random.Random(seed)))
            plan = solver.solve(pool)
            assert plan.fallback_used is False
            assert plan.attempts == 1
            for index, (first, second) in enumerate(plan.slots):
                lead_free = index == 0 or all(m.id != "lead" for m in plan.slots[index - 1])
                if not first.is_authorized and lead_free:
                    assert second.id == "lead"


# ============================================
# Schedule generation
# ============================================
class TestGenerate:
    def test_every_day_has_a_pair(self):
        schedule = make_coordinator().generate(six_pool(), now=WEDNESDAY)
        assert len(schedule.days) == 7
        assert all(len(day.members) == 2 for day in schedule.days)
        assert all(len(set(day.member_ids)) == 2 for day in schedule.days)

    def test_weekend_continuity(self):
        for seed in range(30):
            schedule = make_coordinator(seed=seed).generate(six_pool(), now=WEDNESDAY)
            fri, sat, sun = (set(schedule.day(label).member_ids) for label in ("Fri", "Sat", "Sun"))
            assert fri == sat == sun

    def test_no_adjacent_weekdays_without_fallback(self):
        for seed in range(30):
            schedule = make_coordinator(seed=seed).generate(six_pool(), now=WEDNESDAY)
            assert schedule.fallback_used is False
            ids = weekday_ids(schedule)
            for today_ids, tomorrow_ids in zip(ids, ids[1:]):
                assert not today_ids & tomorrow_ids

    def test_authorized_member_every_day(self):
        authorized = {"a", "b"}
        for seed in range(30):
            schedule = make_coordinator(seed=seed).generate(six_pool(), now=WEDNESDAY)
            for day in schedule.days:
                assert authorized & set(day.member_ids)

    def test_weekend_flags_and_dates(self):
        schedule = make_coordinator().generate(six_pool(), now=WEDNESDAY)
        assert [d.is_weekend for d in schedule.days] == [False] * 5 + [True, True]
        assert schedule.days[0].date == date(2026, 10, 19)
        assert schedule.week_key == "10/19~10/25"
        assert schedule.status == "previewed"

    def test_recent_weekend_staff_not_on_weekend(self):
        schedule = make_coordinator().generate(
            six_pool(), frozenset({"a", "c", "d", "e"}), now=WEDNESDAY,
        )
        assert set(schedule.day("Fri").member_ids) & {"b", "f"}

    def test_generate_has_no_side_effects(self):
        roster = MagicMock()
        notifier = MagicMock()
        make_coordinator(roster, notifier).generate(six_pool(), now=WEDNESDAY)
        roster.commit_week.assert_not_called()
        roster.save.assert_not_called()
        notifier.send_announcement.assert_not_called()

    def test_each_preview_gets_a_new_id(self):
        coordinator = make_coordinator()
        first = coordinator.generate(six_pool(), now=WEDNESDAY)
        second = coordinator.generate(six_pool(), now=WEDNESDAY)
        assert first.schedule_id != second.schedule_id

    def test_insufficient_pool(self):
        roster = MagicMock()
        with pytest.raises(InsufficientMembersError):
            make_coordinator(roster).generate(CandidatePool(members=(member("a"),)))
        with pytest.raises(InsufficientMembersError):
            make_coordinator(roster).generate(CandidatePool())
        roster.commit_week.assert_not_called()

    def test_two_member_pool_uses_fallback(self):
        pool = CandidatePool(members=(member("a", authorized=True), member("b")))
        schedule = make_coordinator().generate(pool, now=WEDNESDAY)
        assert schedule.fallback_used is True
        assert "constraint_solver_exhausted" in schedule.warnings
        assert all(len(day.members) == 2 for day in schedule.days)

    def test_no_authorized_members_warning(self):
        pool = CandidatePool(members=tuple(member(i) for i in "wxyz"))
        schedule = make_coordinator().generate(pool, now=WEDNESDAY)
        assert "no_authorized_members" in schedule.warnings
        assert all(len(day.members) == 2 for day in schedule.days)


# ============================================
# Preview / confirm
# ============================================
class TestPreviewConfirm:
    @pytest.fixture
    def roster(self, tmp_path):
        write_roster(tmp_path / "config.json", abcd_pool().members)
        return RosterRepository(tmp_path / "config.json")

    def test_preview_does_not_write(self, roster):
        before = roster.path.read_bytes()
        result = make_coordinator(roster).preview_weekly_schedule(now=WEDNESDAY)
        assert result["success"] is True
        assert "Weekly duty preview" in result["preview"]
        assert roster.path.read_bytes() == before

    def test_preview_recorded_in_history(self, roster):
        history = HistoryRepository()
        result = make_coordinator(roster, history=history).preview_weekly_schedule(now=WEDNESDAY)
        events = history.get_all(event_type="schedule_previewed")
        assert events[-1]["schedule_id"] == result["schedule"].schedule_id

    def test_abcd_scenario(self, roster):
        notifier = MagicMock()
        coordinator = make_coordinator(roster, notifier)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)

        assert all(len(day.members) == 2 for day in schedule.days)
        fri, sat, sun = (set(schedule.day(label).member_ids) for label in ("Fri", "Sat", "Sun"))
        assert fri == sat == sun
        ids = weekday_ids(schedule)
        for today_ids, tomorrow_ids in zip(ids, ids[1:]):
            assert not today_ids & tomorrow_ids
        for day in schedule.days:
            assert {"a", "b"} & set(day.member_ids)

        result = coordinator.confirm(schedule, now=WEDNESDAY)
        assert result.success is True
        assert result.notified is True

        appearances = schedule.member_days()
        pool = roster.load_candidate_pool()
        for m in pool.members:
            assert m.duty_count == appearances[m.id]
        assert sum(m.duty_count for m in pool.members) == 14
        assert result.counter_deltas == dict(appearances)
        notifier.send_announcement.assert_called_once()

    def test_confirm_stores_days(self, roster):
        coordinator = make_coordinator(roster)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        coordinator.confirm(schedule, now=WEDNESDAY)
        for day in schedule.days:
            stored = roster.get_daily_assignment(day.date)
            assert stored["members"] == list(day.member_ids)
        assert roster.is_confirmed(schedule.schedule_id)

    def test_double_confirm_rejected(self, roster):
        coordinator = make_coordinator(roster)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        coordinator.confirm(schedule, now=WEDNESDAY)
        counts = {m.id: m.duty_count for m in roster.load_candidate_pool().members}

        with pytest.raises(ScheduleAlreadyConfirmedError):
            coordinator.confirm(schedule, now=WEDNESDAY)
        assert {m.id: m.duty_count for m in roster.load_candidate_pool().members} == counts

    def test_confirmed_status_rejected(self, roster):
        coordinator = make_coordinator(roster)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        with pytest.raises(ScheduleAlreadyConfirmedError):
            coordinator.confirm(schedule.mark_confirmed(), now=WEDNESDAY)

    def test_concurrent_confirm_rejected(self, roster):
        notifier = MagicMock()
        coordinator = make_coordinator(roster, notifier)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        coordinator._confirm_lock.acquire()
        try:
            with pytest.raises(ConfirmInProgressError):
                coordinator.confirm(schedule, now=WEDNESDAY)
        finally:
            coordinator._confirm_lock.release()
        notifier.send_announcement.assert_not_called()
        assert not roster.is_confirmed(schedule.schedule_id)

    def test_removed_member_rejected(self, roster, tmp_path):
        coordinator = make_coordinator(roster)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        removed = schedule.days[0].member_ids[0]
        write_roster(
            tmp_path / "config.json",
            [m for m in abcd_pool().members if m.id != removed],
        )
        with pytest.raises(ValueError):
            coordinator.confirm(schedule, now=WEDNESDAY)
        assert not roster.is_confirmed(schedule.schedule_id)

    def test_persistence_failure_sends_nothing(self, roster):
        notifier = MagicMock()
        coordinator = make_coordinator(roster, notifier)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        before = roster.path.read_bytes()

        with patch.object(roster, "save", side_effect=PersistenceFailure("disk full")):
            with pytest.raises(PersistenceFailure):
                coordinator.confirm(schedule, now=WEDNESDAY)

        notifier.send_announcement.assert_not_called()
        assert roster.path.read_bytes() == before
        # Nothing was committed, so the same schedule can still be confirmed.
        assert coordinator.confirm(schedule, now=WEDNESDAY).success is True

    def test_notification_failure_still_commits(self, roster):
        notifier = MagicMock()
        coordinator = make_coordinator(roster, notifier)
        notifier.send_announcement.return_value = False
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        result = coordinator.confirm(schedule, now=WEDNESDAY)
        assert result.success is True
        assert result.notified is False
        assert roster.is_confirmed(schedule.schedule_id)

    def test_assign_weekly_schedule(self, roster):
        result = make_coordinator(roster).assign_weekly_schedule(now=WEDNESDAY)
        assert result.success is True
        assert roster.count_confirmed() == 1
        assert sum(m.duty_count for m in roster.load_candidate_pool().members) == 14

    def test_second_schedule_for_same_week_rejected(self, roster):
        notifier = MagicMock()
        coordinator = make_coordinator(roster, notifier)
        first = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        second = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        coordinator.confirm(first, now=WEDNESDAY)

        with pytest.raises(ScheduleAlreadyConfirmedError):
            coordinator.confirm(second, now=WEDNESDAY)
        assert sum(m.duty_count for m in roster.load_candidate_pool().members) == 14
        for day in first.days:
            assert roster.get_daily_assignment(day.date)["members"] == list(day.member_ids)
        assert not roster.is_confirmed(second.schedule_id)
        assert notifier.send_announcement.call_count == 1

    def test_next_week_can_be_confirmed(self, roster):
        coordinator = make_coordinator(roster)
        coordinator.assign_weekly_schedule(now=WEDNESDAY)
        coordinator.assign_weekly_schedule(now=datetime(2026, 10, 28, 10, 0))
        assert roster.is_week_confirmed(date(2026, 10, 19))
        assert roster.is_week_confirmed(date(2026, 10, 26))
        assert sum(m.duty_count for m in roster.load_candidate_pool().members) == 28

    def test_split_weekend_and_repeat_rejected(self, roster):
        notifier = MagicMock()
        coordinator = make_coordinator(roster, notifier)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        monday = schedule.day("Mon").members
        tampered = with_members(schedule, Fri=monday[:1], Tue=monday)

        with pytest.raises(ValueError) as exc:
            coordinator.confirm(tampered, now=WEDNESDAY)
        message = str(exc.value)
        assert "Fri must have two different members" in message
        assert "share one pair" in message
        assert "two days in a row" in message
        assert sum(m.duty_count for m in roster.load_candidate_pool().members) == 0
        assert not roster.is_confirmed(schedule.schedule_id)
        notifier.send_announcement.assert_not_called()

    def test_day_without_authorized_member_rejected(self, roster):
        coordinator = make_coordinator(roster)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        regulars = tuple(m.ref() for m in abcd_pool().members if not m.is_authorized)
        with pytest.raises(ValueError, match="Wed needs an authorized member"):
            coordinator.confirm(with_members(schedule, Wed=regulars), now=WEDNESDAY)

    def test_fallback_week_may_repeat_members(self, tmp_path):
        path = write_roster(tmp_path / "pair.json", [member("a", authorized=True), member("b")])
        roster = RosterRepository(path)
        coordinator = make_coordinator(roster)
        schedule = coordinator.generate(roster.load_candidate_pool(), now=WEDNESDAY)
        assert schedule.fallback_used is True
        assert coordinator.confirm(schedule, now=WEDNESDAY).success is True
        assert sum(m.duty_count for m in roster.load_candidate_pool().members) == 14


# ============================================
# Roster store
# ============================================
class TestRosterRepository:
    def test_missing_file_reads_as_empty(self, tmp_path):
        repo = RosterRepository(tmp_path / "missing.json")
        assert len(repo.load_candidate_pool()) == 0

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceFailure):
            RosterRepository(path).load()

    def test_non_object_document_raises(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(PersistenceFailure):
            RosterRepository(path).load()

    def test_invalid_member_raises(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"teamMembers": [{"id": "a"}]}), encoding="utf-8")
        with pytest.raises(PersistenceFailure):
            RosterRepository(path).load_candidate_pool()

    def test_commit_week_applies_everything(self, tmp_path):
        path = write_roster(tmp_path / "config.json", abcd_pool().members, botToken="keep-me")
        repo = RosterRepository(path)
        updated = repo.commit_week(
            "sched-1",
            {"2026-10-19": ["a", "c"], "2026-10-20": ["b", "d"]},
            {"a": 1, "b": 1, "c": 1, "d": 1},
            date(2026, 10, 19),
        )
        assert updated == {"a": 1, "b": 1, "c": 1, "d": 1}
        assert repo.is_week_confirmed(date(2026, 10, 19))
        assert not repo.is_week_confirmed(date(2026, 10, 26))
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["botToken"] == "keep-me"
        assert document["confirmedSchedules"] == ["sched-1"]
        assert document["dailyDutySchedule"]["2026-10-19"]["members"] == ["a", "c"]
        assert "assignedAt" in document["dailyDutySchedule"]["2026-10-20"]

    def test_commit_prunes_removed_members(self, tmp_path):
        path = write_roster(
            tmp_path / "config.json",
            abcd_pool().members,
            dailyDutySchedule={
                "2026-10-01": {"members": ["a", "gone"]},
                "2026-10-02": {"members": ["gone"]},
            },
        )
        repo = RosterRepository(path)
        repo.commit_week(None, {}, {})
        schedule = repo.load()["dailyDutySchedule"]
        assert schedule["2026-10-01"]["members"] == ["a"]
        assert "2026-10-02" not in schedule

    def test_failed_write_leaves_file_intact(self, tmp_path):
        path = write_roster(tmp_path / "config.json", abcd_pool().members)
        before = path.read_bytes()
        repo = RosterRepository(path)
        with patch(
            "duty_roster.repositories.roster_repository.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(PersistenceFailure):
                repo.commit_week("sched-1", {}, {"a": 1})
        assert path.read_bytes() == before
        assert list(tmp_path.iterdir()) == [path]

    def test_recent_weekend_history(self, tmp_path):
        path = write_roster(
            tmp_path / "config.json",
            abcd_pool().members,
            dailyDutySchedule={
                "2026-10-16": {"members": ["a", "c"]},  # Fri, last week
                "2026-10-14": {"members": ["b", "d"]},  # Wed
                "2026-10-02": {"members": ["b"]},       # Fri, three weeks back
                "2026-09-26": {"members": ["d"]},       # Sat, outside window
            },
        )
        recent = RosterRepository(path).load_recent_weekend_history(3, date(2026, 10, 19))
        assert recent == frozenset({"a", "b", "c"})

    def test_persist_daily_assignment_and_counters(self, tmp_path):
        path = write_roster(tmp_path / "config.json", abcd_pool().members)
        repo = RosterRepository(path)
        repo.persist_daily_assignment(date(2026, 10, 22), ["a", "d"])
        repo.persist_duty_counters([member("a", authorized=True, count=9)])
        assert repo.get_daily_assignment(date(2026, 10, 22))["members"] == ["a", "d"]
        assert repo.load_candidate_pool().get("a").duty_count == 9
        assert repo.load_candidate_pool().get("b").duty_count == 0


# ============================================
# Ledger
# ============================================
class TestDutyCounterLedger:
    def test_read_and_increment(self, tmp_path):
        repo = RosterRepository(write_roster(tmp_path / "config.json", abcd_pool().members))
        ledger = DutyCounterLedger(repo)
        assert ledger.read("c") == 0
        assert ledger.increment("c", 2) == 2
        assert ledger.read("c") == 2

    def test_unknown_member(self, tmp_path):
        repo = RosterRepository(write_roster(tmp_path / "config.json", abcd_pool().members))
        ledger = DutyCounterLedger(repo)
        with pytest.raises(KeyError):
            ledger.read("zed")
        with pytest.raises(KeyError):
            ledger.increment("zed")


# ============================================
# Announcements
# ============================================
class TestAnnouncements:
    def test_format_members(self):
        assert format_members([member("a").ref(), member("b").ref()]) == "A(a) & B(b)"
        assert format_members([]) == "unassigned"

    def test_preview_message(self):
        schedule = make_coordinator().generate(six_pool(), now=WEDNESDAY)
        text = render_preview_message(schedule)
        assert "10/19~10/25" in text
        assert "Weekend duty (Fri-Sun)" in text
        assert "Saturday (10/24)" in text
        assert "could not satisfy" not in text

    def test_preview_message_flags_fallback(self):
        pool = CandidatePool(members=(member("a", authorized=True), member("b")))
        schedule = make_coordinator().generate(pool, now=WEDNESDAY)
        assert "could not satisfy" in render_preview_message(schedule)

    def test_confirmation_marks_today(self):
        schedule = make_coordinator().generate(six_pool(), now=WEDNESDAY)
        text = render_confirmation_message(schedule, date(2026, 10, 21))
        today_lines = [line for line in text.splitlines() if "← today" in line]
        assert len(today_lines) == 1
        assert "Wednesday (10/21)" in today_lines[0]

    def test_reminder_message(self):
        text = render_reminder_message(date(2026, 10, 21), [member("a").ref()], 14)
        assert "(14:00)" in text
        assert "10/21" in text
        assert "A(a)" in text


# ============================================
# Notification client
# ============================================
class TestNotificationClient:
    def test_mock_delivery_without_url(self):
        with patch("duty_roster.services.notification_client.httpx.Client") as mock_client:
            assert NotificationClient(webhook_url="").send_announcement("hello") is True
            mock_client.assert_not_called()

    @patch("duty_roster.services.notification_client.httpx.Client")
    def test_posts_text(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.post.return_value.status_code = 200
        mock_client_cls.return_value.__enter__ = MagicMock(return_value=mock_client)
        mock_client_cls.return_value.__exit__ = MagicMock(return_value=False)

        client = NotificationClient(webhook_url="http://chat.local/hook", timeout=2.0)
        assert client.send_announcement("hello") is True
        mock_client.post.assert_called_once_with("http://chat.local/hook", json={"text": "hello"})

    @patch("duty_roster.services.notification_client.httpx.Client")
    def test_error_status_reported(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.post.return_value.status_code = 500
        mock_client_cls.return_value.__enter__ = MagicMock(return_value=mock_client)
        mock_client_cls.return_value.__exit__ = MagicMock(return_value=False)
        assert NotificationClient(webhook_url="http://chat.local/hook").send_announcement("x") is False

    @patch("duty_roster.services.notification_client.httpx.Client")
    def test_transport_error_swallowed(self, mock_client_cls):
        mock_client_cls.return_value.__enter__ = MagicMock(side_effect=Exception("connection refused"))
        mock_client_cls.return_value.__exit__ = MagicMock(return_value=False)
        assert NotificationClient(webhook_url="http://chat.local/hook").send_announcement("x") is False
