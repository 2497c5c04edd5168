"""
Naive-UTC timestamps.

Timestamp columns are declared as plain (naive) DateTime in the models, so
every timestamp the tracker stores or compares is naive UTC. Use utc_now()
everywhere instead of datetime.now().
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
