from datetime import date

import pytest

from mamatrack.config import DEFAULT_CONFIG
from mamatrack.data import Database
from mamatrack.services import HealthTracker

TODAY = date(2024, 3, 1)


@pytest.fixture
def db(tmp_path):
    db = Database(str(tmp_path / 'test.db'))
    yield db
    db.close()


@pytest.fixture
def tracker(db):
    return HealthTracker(db, DEFAULT_CONFIG, clock=lambda: TODAY)


@pytest.fixture
def mother(tracker):
    return tracker.get_or_create_user('uid-1', 'wanjiku@example.com', 'Wanjiku Kamau')
