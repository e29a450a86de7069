"""
Streak Calculator

Derives streaks from the pull ledger on every read; nothing here is
persisted. Streak kinds:
- overall (one pull per calendar day)
- morning (pull between MORNING_HOURS)
- evening (pull between EVENING_HOURS, wrapping midnight)
- weekend (pull on WEEKEND_DAYS)

Adjacency rule: two ledger days are consecutive when exactly one step
apart. Same-day entries neither extend nor break a streak; a larger gap
ends it. For overall, morning and evening streaks a step is one calendar
day. For the weekend streak a step is the next weekend day: Saturday to
Sunday, Sunday to the following Saturday. Every day of four straight
weekends is therefore a weekend streak of 8, and a missed Saturday or
Sunday ends it.
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence
from datetime import date, datetime, timedelta, tzinfo
import logging

from src.config import EVENING_HOURS, MORNING_HOURS, WEEKEND_DAYS
from src.models.ledger import PullRecord
from src.models.progression import SpecializedStreaks, StreakState

logger = logging.getLogger(__name__)

# days -> (name, bonus label)
STREAK_MILESTONES: Dict[int, tuple[str, str]] = {
    3: ("3-Day Dedication", "+50 XP"),
    7: ("Week Warrior", "+100 XP"),
    14: ("Fortnight Champion", "+200 XP"),
    30: ("Monthly Master", "+500 XP"),
    60: ("Two-Month Titan", "+1000 XP"),
    100: ("Century Legend", "+2000 XP"),
    365: ("Year of Excellence", "+10000 XP + Golden Badge"),
}

Adjacency = Callable[[date, date], bool]


def next_calendar_day(prev: date, cur: date) -> bool:
    return (cur - prev).days == 1


def next_weekday_in(weekdays: Iterable[int]) -> Adjacency:
    """Adjacency where the next step is the next day whose weekday is in `weekdays`"""
    allowed = frozenset(weekdays)

    def is_next(prev: date, cur: date) -> bool:
        for offset in range(1, 8):
            candidate = prev + timedelta(days=offset)
            if candidate.weekday() in allowed:
                return candidate == cur
        return False

    return is_next


def in_hour_range(hour: int, hours: tuple[int, int]) -> bool:
    """Whether hour falls in [start, end), wrapping midnight when start > end"""
    start, end = hours
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def compute_streak_from_dates(
    dates: Sequence[date],
    is_consecutive: Adjacency = next_calendar_day
) -> StreakState:
    """
    Current and longest streak over ledger days.

    `current` walks back from the most recent day and stops at the first
    gap; `longest` is the longest window seen across the whole ledger.
    """
    ordered = sorted(dates)
    if not ordered:
        return StreakState()

    longest = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if cur == prev:
            continue
        run = run + 1 if is_consecutive(prev, cur) else 1
        longest = max(longest, run)

    current = 1
    for i in range(len(ordered) - 1, 0, -1):
        prev, cur = ordered[i - 1], ordered[i]
        if cur == prev:
            continue
        if not is_consecutive(prev, cur):
            break
        current += 1

    return StreakState(current=current, longest=longest)


def compute_streak(pulls: Sequence[PullRecord]) -> StreakState:
    """Overall streak over the pull ledger"""
    return compute_streak_from_dates([p.date for p in pulls])


def _local_hour(pull: PullRecord, tz: Optional[tzinfo]) -> int:
    ts = pull.timestamp
    if tz is not None and ts.tzinfo is not None:
        ts = ts.astimezone(tz)
    return ts.hour


def compute_specialized_streaks(
    pulls: Sequence[PullRecord],
    tz: Optional[tzinfo] = None
) -> SpecializedStreaks:
    """Morning, evening and weekend streaks over filtered pulls"""
    morning = [p.date for p in pulls if in_hour_range(_local_hour(p, tz), MORNING_HOURS)]
    evening = [p.date for p in pulls if in_hour_range(_local_hour(p, tz), EVENING_HOURS)]
    weekend = [p.date for p in pulls if p.date.weekday() in WEEKEND_DAYS]

    return SpecializedStreaks(
        morning=compute_streak_from_dates(morning),
        evening=compute_streak_from_dates(evening),
        weekend=compute_streak_from_dates(weekend, next_weekday_in(WEEKEND_DAYS)),
    )


def is_streak_broken(pulls: Sequence[PullRecord], today: date) -> bool:
    """True when the latest pull is more than one day before `today`"""
    if not pulls:
        return False
    latest = max(p.date for p in pulls)
    return (today - latest).days > 1


def get_active_streak(pulls: Sequence[PullRecord], today: date) -> int:
    """Current streak as of `today` (0 once it has lapsed)"""
    if is_streak_broken(pulls, today):
        return 0
    return compute_streak(pulls).current


def longest_broken_streak(dates: Sequence[date]) -> int:
    """
    Longest streak that was later ended by a gap.

    The run still in progress at the end of the ledger is not counted, so
    this is the longest streak the user has lost so far.
    """
    ordered = sorted(set(dates))
    best = 0
    run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if next_calendar_day(prev, cur):
            run += 1
        else:
            best = max(best, run)
            run = 1
    return best


def has_rebuilt_streak(dates: Sequence[date], min_length: int = 7) -> bool:
    """
    Whether a run of at least `min_length` days started right after a gap.

    Walks back from the newest day, so the run in progress counts. The
    oldest run has no gap before it and never counts.
    """
    ordered = sorted(set(dates))
    if len(ordered) < min_length:
        return False

    run = 1
    for i in range(len(ordered) - 1, 0, -1):
        if next_calendar_day(ordered[i - 1], ordered[i]):
            run += 1
        elif run >= min_length:
            return True
        else:
            run = 1
    return False


def get_streak_milestones(streak: int) -> List[Dict[str, object]]:
    """Milestones already reached by `streak`"""
    return [
        {"days": days, "name": name, "reward": reward}
        for days, (name, reward) in STREAK_MILESTONES.items()
        if streak >= days
    ]


def get_next_streak_milestone(streak: int) -> Optional[Dict[str, object]]:
    """Next milestone above `streak`, or None when all are reached"""
    for days, (name, _) in sorted(STREAK_MILESTONES.items()):
        if days > streak:
            return {"days": days, "name": name, "days_remaining": days - streak}
    return None


def get_streak_xp_multiplier(streak: int) -> float:
    """XP multiplier for long streaks (1.0 = no bonus)"""
    if streak >= 100:
        return 3.0
    if streak >= 60:
        return 2.5
    if streak >= 30:
        return 2.0
    if streak >= 14:
        return 1.5
    if streak >= 7:
        return 1.25
    if streak >= 3:
        return 1.1
    return 1.0


def get_streak_risk(pulls: Sequence[PullRecord], now: datetime) -> str:
    """
    Risk of losing the streak: 'none', 'low', 'medium' or 'high'.

    - none: pulled today, or nothing to lose
    - low: last pull under 12 hours ago
    - medium: 12-20 hours ago
    - high: over 20 hours ago
    """
    if not pulls:
        return "none"

    latest = max(pulls, key=lambda p: (p.date, p.timestamp))
    if latest.date == now.date():
        return "none"

    hours_since = (now - latest.timestamp).total_seconds() / 3600
    if hours_since < 12:
        return "low"
    if hours_since < 20:
        return "medium"
    return "high"
