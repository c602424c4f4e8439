# src/mamatrack/schedule_logic.py
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence

from .dates import DateLike, parse_date
from .models import (CompletionRecord, GeneratedVisit, NextPending,
                     ProgressSummary, ScheduleEntry)


def generate_schedule(
    anchor_date: DateLike,
    table: Sequence[ScheduleEntry],
    start_label: str = "At birth",
) -> List[GeneratedVisit]:
    """
    Pin every table entry to a calendar date: anchor + offset_days.
    Entries on the same date keep their table order (stable sort), several
    vaccines or tests are legitimately given on one day.
    """
    anchor = parse_date(anchor_date)
    visits: List[GeneratedVisit] = []

    for entry in table:
        offset = entry.offset_days
        visits.append(GeneratedVisit(
            name=entry.name,
            dose=entry.dose,
            date=anchor + timedelta(days=offset),
            age_label=start_label if offset == 0 else f"{entry.age_weeks} weeks",
            method=entry.method,
            purpose=entry.purpose,
        ))

    return sorted(visits, key=lambda v: v.date)


def _administered_slots(completions: Iterable[CompletionRecord]) -> set:
    return {(c.name, c.dose) for c in completions if c.is_administered}


def find_next_pending(
    schedule: Sequence[GeneratedVisit],
    completions: Iterable[CompletionRecord],
    today: DateLike,
) -> Optional[NextPending]:
    """
    Earliest schedule entry without an administered completion for its
    (name, dose). Completion dates are ignored: a dose given early or late
    still satisfies its slot. None means the schedule is complete.
    """
    now = parse_date(today)
    done = _administered_slots(completions)

    for visit in schedule:
        if (visit.name, visit.dose) in done:
            continue
        return NextPending(
            name=visit.name,
            dose=visit.dose,
            scheduled_date=visit.date,
            status="overdue" if visit.date < now else "scheduled",
            method=visit.method,
            purpose=visit.purpose,
        )
    return None


def percentage_half_up(part: int, whole: int) -> int:
    """round(part / whole * 100) with .5 rounded up, 0 for an empty whole."""
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (2 * whole)


def compute_progress(
    schedule: Sequence[GeneratedVisit],
    completions: Iterable[CompletionRecord],
    today: DateLike,
) -> ProgressSummary:
    """
    due_count       : entries dated on or before today
    completed_count : ALL administered completions, not only the due ones
    percentage      : completed / due in percent, not clamped (can exceed 100)
    next_pending    : see find_next_pending
    """
    now = parse_date(today)
    completions = list(completions)

    due_count = sum(1 for v in schedule if v.date <= now)
    # global count, deliberately not filtered to due entries
    completed_count = sum(1 for c in completions if c.is_administered)

    return ProgressSummary(
        due_count=due_count,
        completed_count=completed_count,
        percentage=percentage_half_up(completed_count, due_count),
        next_pending=find_next_pending(schedule, completions, now),
    )


def upcoming_visits(
    schedule: Sequence[GeneratedVisit],
    today: DateLike,
    limit: Optional[int] = None,
) -> List[GeneratedVisit]:
    """Visits strictly after today, in schedule order."""
    now = parse_date(today)
    future = [v for v in schedule if v.date > now]
    return future if limit is None else future[:limit]
