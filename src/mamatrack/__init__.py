"""MamaTrack: maternal and child health tracking (KEPI, ANC, reminders)."""

__version__ = "0.1.0"
