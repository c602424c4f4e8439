from datetime import date, datetime

import ntplib

from mamatrack import clock
from mamatrack.clock import make_clock


class FakeResponse:
    tx_time = datetime(2024, 3, 1, 12, 0).timestamp()


def test_local_clock_by_default():
    assert make_clock({}) == date.today
    assert make_clock({"clock": {"use_ntp": False}}) == date.today


def test_ntp_clock(monkeypatch):
    calls = []

    def fake_request(self, server, version=3, timeout=3):
        calls.append((server, timeout))
        return FakeResponse()

    monkeypatch.setattr(ntplib.NTPClient, 'request', fake_request)
    today = make_clock({'clock': {'use_ntp': True, 'ntp_server': 'time.example.com', 'timeout': 1}})
    assert today() == date(2024, 3, 1)
    assert calls == [('time.example.com', 1)]


def test_ntp_failure_uses_local_date(monkeypatch, caplog):
    def failing_request(self, server, version=3, timeout=3):
        raise ntplib.NTPException('no response')

    monkeypatch.setattr(ntplib.NTPClient, 'request', failing_request)
    monkeypatch.setattr(clock, 'date', type('FixedDate', (date,), {'today': classmethod(lambda cls: date(2024, 5, 5))}))
    today = make_clock({'clock': {'use_ntp': True}})
    assert today() == date(2024, 5, 5)
    assert 'NTP query' in caplog.text
