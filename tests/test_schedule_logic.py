from datetime import date, datetime, timedelta

import pytest

from mamatrack.errors import InvalidDateError
from mamatrack.models import CompletionRecord, ScheduleEntry
from mamatrack.schedule_logic import (compute_progress, find_next_pending,
                                      generate_schedule, percentage_half_up,
                                      upcoming_visits)

X = ScheduleEntry("X", 1, 0, method="oral", purpose="test")
SIX = ScheduleEntry("A", 1, 6, method="oral", purpose="first")
TEN = ScheduleEntry("B", 1, 10, method="oral", purpose="second")


def done(name, dose, status='administered'):
    return CompletionRecord(name, dose, status)


def test_single_entry_at_anchor():
    sched = generate_schedule(date(2024, 1, 1), [X])
    assert len(sched) == 1
    assert sched[0].name == "X" and sched[0].dose == 1
    assert sched[0].date == date(2024, 1, 1)
    assert sched[0].age_label == "At birth"


def test_due_today_is_scheduled_not_overdue():
    sched = generate_schedule('2024-01-01', [X])
    nxt = find_next_pending(sched, [], date(2024, 1, 1))
    assert (nxt.name, nxt.dose, nxt.status) == ("X", 1, "scheduled")


def test_past_date_is_overdue():
    sched = generate_schedule('2024-01-01', [X])
    nxt = find_next_pending(sched, [], date(2024, 6, 1))
    assert nxt.status == "overdue"
    assert nxt.scheduled_date == date(2024, 1, 1)


def test_progress_with_one_completion():
    sched = generate_schedule('2024-01-01', [SIX, TEN])
    progress = compute_progress(sched, [done("A", 1)], date(2024, 3, 1))
    # 6 weeks -> 2024-02-12 is due, 10 weeks -> 2024-03-11 is not
    assert progress.due_count == 1
    assert progress.completed_count == 1
    assert progress.percentage == 100
    assert progress.next_pending.name == "B"
    assert progress.next_pending.scheduled_date == date(2024, 3, 11)
    assert progress.next_pending.status == "scheduled"


def test_generation_is_deterministic():
    table = [SIX, TEN, X]
    assert generate_schedule('2024-01-01', table) == generate_schedule('2024-01-01', table)


def test_sorted_by_date_and_stable_for_ties():
    table = [
        ScheduleEntry("Late", 1, 10, "m", "p"),
        ScheduleEntry("A", 1, 6, "m", "p"),
        ScheduleEntry("B", 1, 6, "m", "p"),
        ScheduleEntry("Birth", 1, 0, "m", "p", age_days=0),
    ]
    sched = generate_schedule(date(2024, 1, 1), table)
    assert [v.name for v in sched] == ["Birth", "A", "B", "Late"]
    dates = [v.date for v in sched]
    assert dates == sorted(dates)


def test_offset_is_seven_days_per_week():
    anchor = date(2023, 12, 31)
    for weeks in (0, 1, 6, 39, 78):
        sched = generate_schedule(anchor, [ScheduleEntry("V", 1, weeks, "m", "p")])
        assert sched[0].date == anchor + timedelta(days=7 * weeks)


def test_age_label_names_weeks():
    sched = generate_schedule('2024-01-01', [SIX], start_label="At start")
    assert sched[0].age_label == "6 weeks"


def test_anchor_accepts_timestamp_strings_and_datetimes():
    a = generate_schedule('2024-01-01T00:00:00.000Z', [SIX])
    b = generate_schedule(datetime(2024, 1, 1, 15, 30), [SIX])
    assert a[0].date == b[0].date == date(2024, 2, 12)


def test_invalid_anchor_raises():
    with pytest.raises(InvalidDateError):
        generate_schedule('not-a-date', [X])
    with pytest.raises(InvalidDateError):
        generate_schedule('', [X])
    with pytest.raises(InvalidDateError):
        find_next_pending([], [], 'tomorrow-ish')


def test_empty_table():
    assert generate_schedule('2024-01-01', []) == []
    progress = compute_progress([], [], date(2024, 1, 1))
    assert progress.due_count == 0
    assert progress.percentage == 0
    assert progress.next_pending is None


def test_completion_order_does_not_matter():
    sched = generate_schedule('2024-01-01', [X, SIX, TEN])
    comps = [done("B", 1), done("X", 1, "missed"), done("X", 1), done("A", 1)]
    a = find_next_pending(sched, comps, date(2024, 5, 1))
    b = find_next_pending(sched, list(reversed(comps)), date(2024, 5, 1))
    assert a == b
    assert a is None


def test_only_administered_completions_count():
    sched = generate_schedule('2024-01-01', [SIX])
    for status in ('scheduled', 'overdue', 'missed'):
        nxt = find_next_pending(sched, [done("A", 1, status)], date(2024, 5, 1))
        assert nxt is not None and nxt.status == "overdue"


def test_dose_must_match():
    sched = generate_schedule('2024-01-01', [SIX])
    assert find_next_pending(sched, [done("A", 2)], date(2024, 5, 1)).name == "A"


def test_full_completion():
    table = [X, SIX, TEN]
    sched = generate_schedule('2024-01-01', table)
    comps = [done(e.name, e.dose) for e in table]
    assert find_next_pending(sched, comps, date(2025, 1, 1)) is None
    progress = compute_progress(sched, comps, date(2025, 1, 1))
    assert progress.completed_count == progress.due_count == 3


def test_completed_count_includes_not_yet_due():
    sched = generate_schedule('2024-01-01', [X, SIX, TEN])
    comps = [done("X", 1), done("A", 1), done("B", 1)]
    progress = compute_progress(sched, comps, date(2024, 1, 1))
    assert progress.due_count == 1
    assert progress.completed_count == 3
    assert progress.percentage == 300


@pytest.mark.parametrize("part,whole,expected", [
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (1, 2, 50),
    (0, 5, 0),
    (3, 0, 0),
])
def test_percentage_rounds_half_up(part, whole, expected):
    assert percentage_half_up(part, whole) == expected


def test_upcoming_visits_after_today():
    sched = generate_schedule('2024-01-01', [X, SIX, TEN])
    assert [v.name for v in upcoming_visits(sched, date(2024, 1, 1))] == ["A", "B"]
    assert len(upcoming_visits(sched, date(2024, 1, 1), limit=1)) == 1
    assert upcoming_visits(sched, date(2025, 1, 1)) == []
