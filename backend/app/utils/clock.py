"""
Clock helpers.

All timestamps are stored as naive UTC datetimes (SQLite drops tzinfo on the
way back out), so every comparison in the engine goes through utcnow().
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
