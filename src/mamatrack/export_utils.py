from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from mamatrack.models import GeneratedVisit, HealthReminder, Vaccination


_STATUS_LABELS = {
    'scheduled': 'scheduled',
    'administered': 'given',
    'overdue': 'OVERDUE',
    'missed': 'missed',
}

_REMINDER_ICONS = {
    'vaccination': '[VAC]',
    'anc_visit': '[ANC]',
    'ifas_refill': '[IFAS]',
    'health_tip': '[TIP]',
}


def _vaccination_index(vaccinations: Iterable[Vaccination]) -> Dict[tuple, Vaccination]:
    return {(v.vaccine_name, v.dose_number): v for v in vaccinations}


def schedule_rows(schedule: Sequence[GeneratedVisit],
                  vaccinations: Optional[Iterable[Vaccination]] = None) -> List[str]:
    """
    One line per generated visit:
      2024-02-12 | 6 weeks  | Pentavalent   | dose 1 | given 2024-02-14
    The status column is left out when no vaccination rows are passed.
    """
    index = _vaccination_index(vaccinations or [])
    rows = []
    for visit in schedule:
        row = f"{visit.date.isoformat()} | {visit.age_label:<9}| {visit.name:<14}| dose {visit.dose}"
        vac = index.get((visit.name, visit.dose))
        if vac is not None:
            label = _STATUS_LABELS.get(vac.status, vac.status)
            if vac.administered_date:
                label += f" {vac.administered_date.isoformat()}"
            row += f" | {label}"
        rows.append(row)
    return rows


def format_reminder(rem: HealthReminder, today: Optional[date] = None) -> str:
    """Short human-readable line for a reminder, e.g. '[ANC] 2024-03-25 ANC Visit 1 (in 5 days)'."""
    icon = _REMINDER_ICONS.get(rem.type, '[*]')
    text = f"{icon} {rem.due_date.isoformat()} {rem.title}"
    if rem.priority in ('high', 'urgent'):
        text += f" !{rem.priority}"
    if rem.is_completed:
        return text + " (done)"
    if today is not None:
        days = (rem.due_date - today).days
        if days == 0:
            text += " (today)"
        elif days > 0:
            text += f" (in {days} days)"
        else:
            text += f" ({-days} days ago)"
    return text
