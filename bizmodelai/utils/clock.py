"""
Naive UTC timestamps, matching the TIMESTAMP (without time zone) columns
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
