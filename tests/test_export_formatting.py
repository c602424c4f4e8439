from datetime import date

from mamatrack.export_utils import format_reminder, schedule_rows
from mamatrack.kepi import generate_vaccination_schedule
from mamatrack.models import HealthReminder, Vaccination


def test_schedule_rows_without_status():
    rows = schedule_rows(generate_vaccination_schedule('2024-01-01'))
    assert len(rows) == 18
    assert rows[0].startswith('2024-01-01 | At birth')
    assert 'BCG' in rows[0] and rows[0].endswith('dose 1')


def test_schedule_rows_with_status():
    sched = generate_vaccination_schedule('2024-01-01')
    vacs = [Vaccination(1, 'BCG', 1, '2024-01-01', '2024-01-03', status='administered'),
            Vaccination(1, 'OPV', 1, '2024-01-01', status='overdue')]
    rows = schedule_rows(sched, vacs)
    assert rows[0].endswith('| given 2024-01-03')
    assert rows[1].endswith('| OVERDUE')
    assert rows[2].endswith('dose 1')


def test_format_reminder():
    rem = HealthReminder(1, 'anc_visit', 'ANC Visit 1', '', '2024-03-25')
    assert format_reminder(rem) == '[ANC] 2024-03-25 ANC Visit 1'
    assert format_reminder(rem, date(2024, 3, 20)) == '[ANC] 2024-03-25 ANC Visit 1 (in 5 days)'
    assert format_reminder(rem, date(2024, 3, 25)).endswith('(today)')
    assert format_reminder(rem, date(2024, 3, 27)).endswith('(2 days ago)')


def test_format_reminder_priority_and_done():
    rem = HealthReminder(1, 'vaccination', 'BCG Vaccination Due', '', '2024-01-01',
                         priority='urgent', is_completed=True)
    assert format_reminder(rem, date(2024, 1, 1)) == '[VAC] 2024-01-01 BCG Vaccination Due !urgent (done)'
