"""
Achievement System

Declarative catalog of achievements, each a predicate over an
AchievementMetrics snapshot. Categories:
- Streaks and total pulls
- Social (favorites, shares, referrals)
- Time of day (morning, evening, weekend streaks)
- Resilience (rebuilding a broken streak)
- Levels
- Journal
- Holder tiers and packs
- Special moments (midnight, New Year's Day, combos)

Unlocks are append-once: an achievement already in the user's record is
never evaluated again. This module grants no XP and renders nothing;
GamificationService layers both on top.
"""

from typing import Dict, List, Optional
import logging

from pydantic import TypeAdapter

from src.exceptions import ValidationError
from src.gamification.context import EngineContext
from src.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementMetrics,
    AchievementRecord,
)
from src.monitoring.prometheus_metrics import track_achievement_unlocked
from src.storage import records

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[AchievementRecord])


def _counter(
    achievement_id: str,
    name: str,
    description: str,
    icon: str,
    category: AchievementCategory,
    field: str,
    requirement: int,
) -> Achievement:
    """Achievement unlocked once a metrics counter reaches `requirement`"""
    return Achievement(
        id=achievement_id,
        name=name,
        description=description,
        icon=icon,
        category=category,
        requirement=requirement,
        predicate=lambda m: getattr(m, field) >= requirement,
        progress=lambda m: getattr(m, field),
    )


def _flag(
    achievement_id: str,
    name: str,
    description: str,
    icon: str,
    category: AchievementCategory,
    predicate,
) -> Achievement:
    """One-off achievement; progress is 0 or 1"""
    return Achievement(
        id=achievement_id,
        name=name,
        description=description,
        icon=icon,
        category=category,
        requirement=1,
        predicate=predicate,
    )


C = AchievementCategory

ACHIEVEMENTS: List[Achievement] = [
    # Streaks
    _counter("streak_7", "Week Warrior", "Maintain a 7-day streak", "🔥", C.STREAK, "streak", 7),
    _counter("streak_30", "Monthly Master", "Maintain a 30-day streak", "⭐", C.STREAK, "streak", 30),
    _counter("streak_100", "Century Champion", "Maintain a 100-day streak", "👑", C.STREAK, "streak", 100),

    # Total pulls
    _counter("pulls_50", "Dedicated Practitioner", "Pull 50 cards total", "🎯", C.PULLS, "total_pulls", 50),
    _counter("pulls_100", "Master Practitioner", "Pull 100 cards total", "💎", C.PULLS, "total_pulls", 100),
    _counter("pulls_365", "Year of Excellence", "Pull 365 cards total", "🌟", C.PULLS, "total_pulls", 365),

    # Social
    _counter("favorite_10", "Collector", "Favorite 10 cards", "💫", C.SOCIAL, "favorites", 10),
    _counter("share_5", "Vibe Spreader", "Share your card 5 times", "🌈", C.SOCIAL, "shares", 5),
    _counter("share_20", "Community Catalyst", "Share 20 cards", "📢", C.SOCIAL, "shares", 20),
    _counter("share_50", "Viral Visionary", "Share 50 cards", "🚀", C.SOCIAL, "shares", 50),

    # Time of day
    _counter("morning_7", "Morning Ritual", "Pull your card in the morning for 7 days straight",
             "☀️", C.TIME_OF_DAY, "morning_streak", 7),
    _counter("evening_7", "Night Owl Sage", "Pull your card late in the evening for 7 days straight",
             "🦉", C.TIME_OF_DAY, "evening_streak", 7),
    # 8 consecutive weekend days = 4 weekends
    _counter("weekend_4", "Weekend Warrior", "Never miss a weekend pull for 4 weeks",
             "🏔️", C.TIME_OF_DAY, "weekend_streak", 8),

    # Referrals (completed only)
    _counter("referral_1", "First Friend", "Refer your first friend who pulls a card", "🤝", C.SOCIAL, "referrals", 1),
    _counter("referral_5", "Community Builder", "Bring 5 friends to the practice", "🏗️", C.SOCIAL, "referrals", 5),
    _counter("referral_20", "Vibe Tribe Leader", "Bring 20 practitioners to the community", "👑", C.SOCIAL, "referrals", 20),

    # Resilience
    _flag("phoenix_rising", "Phoenix Rising", "Rebuild a 7-day streak after breaking one", "🔥", C.RESILIENCE,
          lambda m: m.streak_broken and m.streak >= 7),
    _flag("comeback_champion", "Comeback Champion", "Break a 30+ day streak and rebuild to 30 again", "💪",
          C.RESILIENCE, lambda m: m.longest_broken_streak >= 30 and m.streak >= 30),

    # Levels
    _counter("level_10", "Rising Star", "Reach Level 10", "⚡", C.LEVEL, "level", 10),
    _counter("level_25", "Enlightened One", "Reach Level 25", "✨", C.LEVEL, "level", 25),
    _counter("level_50", "Legendary Practitioner", "Reach Level 50", "👑", C.LEVEL, "level", 50),

    # Journal
    _counter("journal_1", "First Thoughts", "Write your first journal entry", "📝", C.JOURNAL, "journal_entries", 1),
    _counter("journal_7", "Reflective Soul", "Write 7 journal entries", "📖", C.JOURNAL, "journal_entries", 7),
    _counter("journal_30", "Thoughtful Practitioner", "Write 30 journal entries", "✍️", C.JOURNAL, "journal_entries", 30),
    _counter("journal_100", "Master Journaler", "Complete 100 journal entries", "📚", C.JOURNAL, "journal_entries", 100),
    _counter("journal_streak_7", "Daily Scribe", "Journal for 7 days in a row", "🔥", C.JOURNAL, "journal_streak", 7),
    _counter("journal_words_500", "Wordsmith", "Write a 500+ word entry", "🖊️", C.JOURNAL, "longest_journal_entry", 500),
    _counter("journal_words_10000", "Introspection Champion", "Write 10,000+ total words", "📜",
             C.JOURNAL, "total_journal_words", 10_000),

    # Holder tiers
    _counter("vibe_holder", "Holder", "Hold 1,000+ tokens", "💎", C.HOLDER, "token_balance", 1_000),
    _counter("vibe_believer", "Believer", "Hold 10,000+ tokens", "✨", C.HOLDER, "token_balance", 10_000),
    _counter("vibe_champion", "Champion", "Hold 50,000+ tokens", "🏆", C.HOLDER, "token_balance", 50_000),
    _counter("vibe_legend", "Legend", "Hold 100,000+ tokens", "👑", C.HOLDER, "token_balance", 100_000),
    _counter("vibe_whale", "Whale", "Hold 1,000,000+ tokens", "🐋", C.HOLDER, "token_balance", 1_000_000),

    # Packs
    _counter("pack_collector_1", "Pack Explorer", "Claim your first pack", "🎴", C.PACKS, "packs_claimed", 1),
    _counter("pack_collector_3", "Pack Enthusiast", "Claim 3 different packs", "📦", C.PACKS, "packs_claimed", 3),
    _counter("pack_collector_5", "Full Spectrum Master", "Collect 5 packs", "🌈", C.PACKS, "packs_claimed", 5),
    Achievement(
        id="pack_master",
        name="Pack Master",
        description="Pull 50 cards from a single pack",
        icon="🃏",
        category=C.PACKS,
        requirement=50,
        predicate=lambda m: max(m.pack_usage.values(), default=0) >= 50,
        progress=lambda m: max(m.pack_usage.values(), default=0),
    ),

    # Special moments
    _flag("midnight_mystic", "Midnight Mystic", "Pull a card at exactly midnight", "🌙", C.SPECIAL,
          lambda m: m.pulled_at_midnight),
    _flag("new_year_intention", "New Year Intention Setter", "Pull a card on New Year's Day", "🎊", C.SPECIAL,
          lambda m: m.pulled_on_new_year),
    _counter("combo_king", "Combo King", "Chain 5 actions in a single session", "👑", C.SPECIAL, "combo", 5),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Optional[Achievement]:
    return ACHIEVEMENTS_BY_ID.get(achievement_id)


def _records_key(user_key: str) -> Optional[str]:
    try:
        return records.record_key(records.ACHIEVEMENTS, user_key)
    except ValidationError:
        return None


def get_user_achievements(ctx: EngineContext, user_key: str) -> List[AchievementRecord]:
    """User's unlocked achievements, in unlock order"""
    key = _records_key(user_key)
    if key is None:
        return []
    return records.load_record(ctx.store, key, _records_adapter, list)


def check_and_unlock_achievements(
    ctx: EngineContext,
    user_key: str,
    metrics: AchievementMetrics,
) -> List[Achievement]:
    """
    Unlock every achievement whose predicate now holds

    Args:
        ctx: Engine context
        user_key: Wallet address or username
        metrics: Current snapshot (see src.gamification.metrics.build_metrics)

    Returns:
        Newly unlocked achievements in catalog order; empty when nothing
        new was unlocked or the unlocks could not be stored
    """
    key = _records_key(user_key)
    if key is None:
        return []

    unlocked = get_user_achievements(ctx, user_key)
    unlocked_ids = {r.achievement_id for r in unlocked}

    newly_unlocked = []
    for achievement in ACHIEVEMENTS:
        if achievement.id in unlocked_ids:
            continue
        try:
            met = achievement.is_met(metrics)
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Achievement '{achievement.id}' predicate failed: {e}")
            continue
        if met:
            newly_unlocked.append(achievement)

    if not newly_unlocked:
        return []

    now = ctx.now()
    unlocked.extend(AchievementRecord(achievement_id=a.id, unlocked_at=now) for a in newly_unlocked)
    if not records.save_record(ctx.store, key, _records_adapter, unlocked):
        logger.error(f"Achievement unlocks for {user_key} were not persisted")
        return []

    for achievement in newly_unlocked:
        track_achievement_unlocked(achievement.id)
        logger.info(f"Achievement unlocked: {user_key} -> {achievement.id} ({achievement.name})")

    return newly_unlocked


def mark_achievement_seen(ctx: EngineContext, user_key: str, achievement_id: str) -> bool:
    """Flag an unlocked achievement as seen by the user"""
    key = _records_key(user_key)
    if key is None:
        return False

    unlocked = get_user_achievements(ctx, user_key)
    for record in unlocked:
        if record.achievement_id == achievement_id:
            if record.seen:
                return True
            record.seen = True
            return records.save_record(ctx.store, key, _records_adapter, unlocked)
    return False


def get_unseen_achievements(ctx: EngineContext, user_key: str) -> List[AchievementRecord]:
    return [r for r in get_user_achievements(ctx, user_key) if not r.seen]


def get_achievement_progress(metrics: AchievementMetrics, achievement_id: str) -> Optional[Dict[str, any]]:
    """
    Progress toward one achievement

    Returns:
        {
            'achievement_id': str,
            'current': float,        # capped at requirement
            'requirement': int,
            'progress_percent': float,
            'met': bool
        }
        or None for an unknown achievement
    """
    achievement = get_achievement(achievement_id)
    if achievement is None:
        return None

    met = achievement.is_met(metrics)
    if achievement.progress is not None:
        current = achievement.progress(metrics)
    else:
        current = 1 if met else 0

    current = min(current, achievement.requirement)
    percent = current / achievement.requirement * 100 if achievement.requirement else 0

    return {
        "achievement_id": achievement.id,
        "current": current,
        "requirement": achievement.requirement,
        "progress_percent": min(max(percent, 0.0), 100.0),
        "met": met,
    }
