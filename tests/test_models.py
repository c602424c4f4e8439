from datetime import date

import pytest

from mamatrack.errors import InvalidDateError, InvalidRecordError
from mamatrack.models import (AncVisit, Child, CommunityPost, CompletionRecord,
                              HealthFacility, HealthReminder, Vaccination)


def test_completion_from_snake_and_camel_case():
    a = CompletionRecord.from_dict({'vaccine_name': 'BCG', 'dose_number': '1',
                                    'status': 'administered', 'administered_date': '2024-01-02'})
    b = CompletionRecord.from_dict({'vaccineName': 'BCG', 'doseNumber': 1,
                                    'status': 'administered', 'administeredDate': '2024-01-02'})
    assert a == b
    assert a.actual_date == date(2024, 1, 2)
    assert a.is_administered


def test_completion_rejects_bad_input():
    with pytest.raises(InvalidRecordError):
        CompletionRecord('BCG', 1, 'given')
    with pytest.raises(InvalidRecordError):
        CompletionRecord.from_dict({'name': 'BCG'})
    with pytest.raises(InvalidRecordError):
        CompletionRecord.from_dict({'name': 'BCG', 'dose': 'first'})


def test_child_validates_at_boundary():
    child = Child(1, 'Amani', 'Otieno', '2024-01-01', 'female')
    assert child.date_of_birth == date(2024, 1, 1)
    assert child.id is None
    with pytest.raises(InvalidRecordError):
        Child(1, 'Amani', 'Otieno', '2024-01-01', 'unknown')
    with pytest.raises(InvalidDateError):
        Child(1, 'Amani', 'Otieno', 'soon', 'female')


def test_vaccination_as_completion():
    vac = Vaccination(1, 'OPV', 2, '2024-02-12', '2024-02-13', status='administered')
    comp = vac.as_completion()
    assert (comp.name, comp.dose, comp.status, comp.actual_date) == \
        ('OPV', 2, 'administered', date(2024, 2, 13))


def test_completed_anc_visit_counts_as_administered():
    visit = AncVisit(1, 2, '2024-05-20', actual_date='2024-05-21', status='completed')
    comp = visit.as_completion()
    assert comp.is_administered
    assert (comp.name, comp.dose) == ('ANC Visit', 2)
    assert not AncVisit(1, 3, '2024-07-15').as_completion().is_administered


def test_reminder_and_post_validation():
    with pytest.raises(InvalidRecordError):
        HealthReminder(1, 'party', 't', 'd', '2024-01-01')
    with pytest.raises(InvalidRecordError):
        CommunityPost(1, 'hello', 'politics')
    with pytest.raises(InvalidRecordError):
        CommunityPost(1, '   ', 'general')
    with pytest.raises(InvalidRecordError):
        HealthFacility('Kibera Clinic', 'spa', 'Nairobi')
