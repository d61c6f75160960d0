"""Hour/date conversions for submission timestamps (UTC, stdlib-only)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta

from assembly.diagnosiskeys.model import DiagnosisKey

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)


def hour_of(hours_since_epoch: int) -> datetime:
    """Hour-aligned UTC datetime for a submission timestamp."""
    return EPOCH + timedelta(hours=hours_since_epoch)


def epoch_seconds(moment: datetime) -> int:
    return int((moment - EPOCH).total_seconds())


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def get_dates(keys: Iterable[DiagnosisKey]) -> set[date]:
    """Distinct UTC dates on which at least one key was submitted."""
    return {hour_of(key.submission_timestamp).date() for key in keys}


def get_hours(day: date, keys: Iterable[DiagnosisKey]) -> set[datetime]:
    """Distinct submission hours on ``day``, only those with at least one key."""
    return {
        hour
        for hour in (hour_of(key.submission_timestamp) for key in keys)
        if hour.date() == day
    }


__all__ = [
    "EPOCH",
    "ONE_DAY",
    "ONE_HOUR",
    "epoch_seconds",
    "get_dates",
    "get_hours",
    "hour_of",
    "start_of_day",
]
