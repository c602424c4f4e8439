from datetime import date

from mamatrack.models import Vaccination
from mamatrack.statistics import calculate_trends, count_by_status, summarize_vaccinations


def _vac(name, dose, scheduled, given=None):
    status = 'administered' if given else 'scheduled'
    return Vaccination(1, name, dose, scheduled, given, status=status)


def test_count_by_status(tracker, mother, db):
    child = tracker.add_child(mother.id, 'Amani', 'Kamau', '2024-01-01', 'male')
    first = db.load_vaccinations(child.id)[0]
    tracker.record_vaccination(first.id, '2024-01-01')
    tracker.refresh_overdue_vaccinations(child.id)
    stats = count_by_status(db, child.id)
    assert stats == {'scheduled': 12, 'administered': 1, 'overdue': 5, 'missed': 0}


def test_summarize_vaccinations():
    vacs = [
        _vac('BCG', 1, '2024-01-01', '2024-01-01'),
        _vac('OPV', 1, '2024-01-01', '2024-01-05'),
        _vac('PCV', 1, '2024-02-12'),
    ]
    assert summarize_vaccinations(vacs) == {
        'total': 3, 'administered': 2, 'outstanding': 1, 'on_time': 1, 'late': 1}


def test_calculate_trends():
    vacs = [
        _vac('BCG', 1, '2024-01-01', '2024-01-01'),
        _vac('OPV', 1, '2024-01-01', '2024-01-02'),
        _vac('PCV', 1, '2024-02-12', '2024-02-13'),
        _vac('IPV', 1, '2024-04-08'),
    ]
    assert calculate_trends(vacs, 'weekly') == {'periods': [1, 7], 'counts': [2, 1]}
    assert calculate_trends(vacs, 'monthly') == {'periods': [1, 2], 'counts': [2, 1]}
    assert calculate_trends(vacs, 'yearly') == {'periods': [2024], 'counts': [3]}
    assert calculate_trends([], 'weekly') == {'periods': [], 'counts': []}
