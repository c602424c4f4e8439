from collections import defaultdict
from typing import Dict, Iterable, List

from mamatrack.data import Database
from mamatrack.models import VACCINATION_STATUSES, Vaccination


def count_by_status(db: Database, child_id: int) -> Dict[str, int]:
    """
    Number of vaccination rows per status for one child, e.g.
    {'scheduled': 12, 'administered': 5, 'overdue': 1, 'missed': 0}.
    Every known status is present, unused ones with 0.
    """
    counts = {status: 0 for status in VACCINATION_STATUSES}
    for vac in db.load_vaccinations(child_id):
        counts[vac.status] += 1
    return counts


def summarize_vaccinations(vaccinations: Iterable[Vaccination]) -> Dict[str, int]:
    """
    total        : number of materialized slots
    administered : given doses
    outstanding  : everything not yet given (scheduled, overdue, missed)
    on_time      : doses given on or before their scheduled date
    late         : doses given after their scheduled date
    """
    vaccinations = list(vaccinations)
    given = [v for v in vaccinations if v.status == 'administered']
    on_time = sum(1 for v in given
                  if v.administered_date and v.administered_date <= v.scheduled_date)
    late = sum(1 for v in given
               if v.administered_date and v.administered_date > v.scheduled_date)
    return {
        'total': len(vaccinations),
        'administered': len(given),
        'outstanding': len(vaccinations) - len(given),
        'on_time': on_time,
        'late': late,
    }


def calculate_trends(records: Iterable[Vaccination], period: str = 'weekly') -> Dict[str, List[int]]:
    """Administered doses per ISO week, month or year of the administered date."""
    trends = defaultdict(int)

    for vac in records:
        if vac.status != 'administered' or vac.administered_date is None:
            continue
        day = vac.administered_date
        if period == 'weekly':
            key = day.isocalendar()[1]  # ISO week
        elif period == 'monthly':
            key = day.month
        else:
            key = day.year

        trends[key] += 1

    sorted_keys = sorted(trends.keys())
    return {"periods": sorted_keys, "counts": [trends[k] for k in sorted_keys]}
