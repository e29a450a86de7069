"""Achievement models for gamification"""
from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel
from typing import Callable, Optional
from datetime import datetime


class AchievementCategory(str, Enum):
    """Achievement categories"""
    STREAK = "streak"
    PULLS = "pulls"
    SOCIAL = "social"
    TIME_OF_DAY = "time_of_day"
    RESILIENCE = "resilience"
    LEVEL = "level"
    JOURNAL = "journal"
    HOLDER = "holder"
    PACKS = "packs"
    SPECIAL = "special"


class AchievementMetrics(BaseModel):
    """Snapshot of derived counters that achievement predicates read"""
    streak: int = 0
    longest_streak: int = 0
    total_pulls: int = 0
    favorites: int = 0
    shares: int = 0
    referrals: int = 0
    morning_streak: int = 0
    evening_streak: int = 0
    weekend_streak: int = 0
    level: int = 1
    streak_broken: bool = False  # a 7+ day run started right after a gap
    longest_broken_streak: int = 0  # longest run later ended by a gap
    journal_entries: int = 0
    journal_streak: int = 0
    total_journal_words: int = 0
    longest_journal_entry: int = 0
    token_balance: float = 0
    packs_claimed: int = 0
    pack_usage: dict[str, int] = {}
    combo: int = 0
    pulled_on_new_year: bool = False
    pulled_at_midnight: bool = False


@dataclass(frozen=True)
class Achievement:
    """Achievement definition: a tagged predicate over AchievementMetrics"""
    id: str
    name: str
    description: str
    icon: str
    category: AchievementCategory
    requirement: int
    predicate: Callable[[AchievementMetrics], bool]
    # Counter shown as progress toward `requirement`
    progress: Optional[Callable[[AchievementMetrics], float]] = None

    def is_met(self, metrics: AchievementMetrics) -> bool:
        return bool(self.predicate(metrics))


class AchievementRecord(BaseModel):
    """User's unlocked achievement (append-once)"""
    achievement_id: str
    unlocked_at: datetime
    seen: bool = False
