# src/mamatrack/clock.py
import logging
from datetime import date
from typing import Callable

import ntplib

Clock = Callable[[], date]


def ntp_today(server: str = 'pool.ntp.org', timeout: float = 3) -> date:
    """Today's date from an NTP server; the device clock is not always right."""
    response = ntplib.NTPClient().request(server, version=3, timeout=timeout)
    return date.fromtimestamp(response.tx_time)


def make_clock(cfg: dict) -> Clock:
    """Return a callable giving 'today', per the clock section of the config."""
    clock_cfg = cfg.get('clock', {})
    if not clock_cfg.get('use_ntp'):
        return date.today

    server = clock_cfg.get('ntp_server', 'pool.ntp.org')
    timeout = clock_cfg.get('timeout', 3)

    def today() -> date:
        try:
            return ntp_today(server, timeout)
        except (ntplib.NTPException, OSError) as e:
            logging.warning(f"[MamaTrack] NTP query to {server} failed, using local date: {e}")
            return date.today()

    return today
