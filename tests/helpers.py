"""Shared helpers for building ledgers in tests"""
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from src.gamification.event_ledger import record_pull

UTC = ZoneInfo("UTC")


class FixedClock:
    """Callable clock that only moves when told to"""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, current: datetime) -> datetime:
        self.current = current
        return self.current


def at(day: date, hour: int = 10, minute: int = 0, tz=UTC) -> datetime:
    """Aware datetime on `day` at hour:minute"""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)


def consecutive(start: date, count: int) -> list:
    return [start + timedelta(days=i) for i in range(count)]


def pull_days(ctx, user_key: str, days, hour: int = 10) -> None:
    """Record one pull per day at the given hour"""
    for day in days:
        assert record_pull(ctx, user_key, pulled_at=at(day, hour)) is True
