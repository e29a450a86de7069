"""
XP and Leveling System

Manages XP awards and level calculations.

Leveling Curve:
- XP needed to clear level n: floor(LEVEL_BASE_XP * LEVEL_GROWTH_RATE ** (n - 1))
  (100, 150, 225, 337, ... with the defaults)
- xp_threshold(n): cumulative XP at which level n starts (level 1 starts at 0)

Level tiers (cosmetic):
- Level 1-5: bronze
- Level 6-15: silver
- Level 16-30: gold
- Level 31+: platinum

XP Award Rules: see XP_REWARDS
"""

from typing import Dict, List, Optional
import logging
import math

from pydantic import TypeAdapter

from src import config
from src.exceptions import ValidationError
from src.gamification.context import EngineContext
from src.models.progression import LevelInfo, UserXP, XPLedgerEntry
from src.monitoring.prometheus_metrics import track_xp_awarded
from src.storage import records

logger = logging.getLogger(__name__)

XP_REWARDS = {
    "PULL_CARD": 10,
    "SHARE_CARD": 5,
    "FAVORITE_CARD": 2,
    "STREAK_DAY": 5,
    "STREAK_7": 50,
    "STREAK_30": 150,
    "STREAK_100": 500,
    "MORNING_PULL": 3,
    "EVENING_PULL": 3,
    "WEEKEND_PULL": 5,
    "FIRST_REFERRAL": 50,
    "REFERRAL": 25,
    "ACHIEVEMENT_UNLOCK": 20,
    "JOURNAL_ENTRY": 15,
    "DETAILED_JOURNAL": 10,
}

# Streak length -> milestone reward key
STREAK_MILESTONE_REWARDS = {
    7: "STREAK_7",
    30: "STREAK_30",
    100: "STREAK_100",
}

_user_xp_adapter = TypeAdapter(UserXP)
_transactions_adapter = TypeAdapter(List[XPLedgerEntry])


def xp_for_level(level: int) -> int:
    """XP needed to go from `level` to `level + 1`"""
    if level < 1:
        level = 1
    return math.floor(config.LEVEL_BASE_XP * config.LEVEL_GROWTH_RATE ** (level - 1))


def xp_threshold(level: int) -> int:
    """Cumulative XP at which `level` starts; strictly increasing, level 1 -> 0"""
    return sum(xp_for_level(n) for n in range(1, max(level, 1)))


def get_level_tier(level: int) -> str:
    if level <= 5:
        return "bronze"
    if level <= 15:
        return "silver"
    if level <= 30:
        return "gold"
    return "platinum"


def calculate_level_from_xp(total_xp: int) -> LevelInfo:
    """
    Derive level and progress from cumulative XP.

    `level` is the largest level whose threshold is <= total_xp.
    Negative totals are treated as 0.
    """
    total_xp = max(int(total_xp), 0)

    level = 1
    level_start = 0
    while level_start + xp_for_level(level) <= total_xp:
        level_start += xp_for_level(level)
        level += 1

    current_xp = total_xp - level_start
    xp_for_next_level = xp_for_level(level)
    progress = current_xp / xp_for_next_level * 100 if xp_for_next_level else 0

    return LevelInfo(
        level=level,
        current_xp=current_xp,
        xp_for_next_level=xp_for_next_level,
        progress_percent=min(max(progress, 0.0), 100.0),
        total_xp=total_xp,
        level_tier=get_level_tier(level),
    )


def _load_user_xp(ctx: EngineContext, key: str) -> UserXP:
    return records.load_record(ctx.store, key, _user_xp_adapter, UserXP)


def award_xp(
    ctx: EngineContext,
    user_key: str,
    amount: int,
    reason: str = "Activity completed"
) -> Dict[str, any]:
    """
    Award XP to user and check for level up

    Args:
        ctx: Engine context
        user_key: Wallet address or username
        amount: Amount of XP to award (must be positive)
        reason: Human-readable description

    Returns:
        {
            'xp_awarded': int,           # 0 when nothing was persisted
            'old_total_xp': int,
            'new_total_xp': int,
            'old_level': int,
            'new_level': int,
            'leveled_up': bool,
            'levels_gained': list[int],  # one entry per threshold crossed
            'level_info': LevelInfo
        }
    """
    try:
        key = records.record_key(records.XP, user_key)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("XP amount must be a positive integer", field="amount", value=amount)
    except ValidationError:
        return _no_award(0)

    xp_data = _load_user_xp(ctx, key)
    old_total_xp = xp_data.total_xp
    old_level = calculate_level_from_xp(old_total_xp).level

    new_total_xp = old_total_xp + amount
    level_info = calculate_level_from_xp(new_total_xp)
    new_level = level_info.level

    now = ctx.now()
    updated = UserXP(total_xp=new_total_xp, level=new_level, last_updated=now)
    if not records.save_record(ctx.store, key, _user_xp_adapter, updated):
        logger.error(f"XP award of {amount} for {user_key} was not persisted")
        return _no_award(old_total_xp)

    _record_transaction(ctx, user_key, XPLedgerEntry(amount=amount, reason=reason, timestamp=now))

    levels_gained = list(range(old_level + 1, new_level + 1))
    track_xp_awarded(amount, reason, len(levels_gained))

    logger.info(
        f"Awarded {amount} XP to {user_key} for '{reason}'. "
        f"Total: {new_total_xp} XP, Level: {new_level}"
    )
    if levels_gained:
        logger.info(f"User {user_key} leveled up from {old_level} to {new_level}!")

    return {
        "xp_awarded": amount,
        "old_total_xp": old_total_xp,
        "new_total_xp": new_total_xp,
        "old_level": old_level,
        "new_level": new_level,
        "leveled_up": bool(levels_gained),
        "levels_gained": levels_gained,
        "level_info": level_info,
    }


def _no_award(total_xp: int) -> Dict[str, any]:
    level_info = calculate_level_from_xp(total_xp)
    return {
        "xp_awarded": 0,
        "old_total_xp": level_info.total_xp,
        "new_total_xp": level_info.total_xp,
        "old_level": level_info.level,
        "new_level": level_info.level,
        "leveled_up": False,
        "levels_gained": [],
        "level_info": level_info,
    }


def _record_transaction(ctx: EngineContext, user_key: str, entry: XPLedgerEntry) -> None:
    """Append to the XP history, keeping the newest XP_TRANSACTION_HISTORY_LIMIT entries"""
    key = records.record_key(records.XP_TRANSACTIONS, user_key)
    transactions = records.load_record(ctx.store, key, _transactions_adapter, list)
    transactions.append(entry)
    records.save_record(
        ctx.store, key, _transactions_adapter,
        transactions[-config.XP_TRANSACTION_HISTORY_LIMIT:]
    )


def get_user_xp(ctx: EngineContext, user_key: str) -> UserXP:
    """Persisted XP record (zero XP for unknown or invalid users)"""
    try:
        key = records.record_key(records.XP, user_key)
    except ValidationError:
        return UserXP()
    return _load_user_xp(ctx, key)


def get_level_info(ctx: EngineContext, user_key: str) -> LevelInfo:
    """Level, in-level XP and progress for a user"""
    return calculate_level_from_xp(get_user_xp(ctx, user_key).total_xp)


def get_xp_history(ctx: EngineContext, user_key: str, limit: Optional[int] = None) -> List[XPLedgerEntry]:
    """
    Recent XP transactions, newest first

    Args:
        ctx: Engine context
        user_key: Wallet address or username
        limit: Maximum number of entries to return
    """
    try:
        key = records.record_key(records.XP_TRANSACTIONS, user_key)
    except ValidationError:
        return []

    transactions = records.load_record(ctx.store, key, _transactions_adapter, list)
    ordered = sorted(transactions, key=lambda t: t.timestamp, reverse=True)
    return ordered[:limit] if limit is not None else ordered


def get_streak_milestone_reward(streak: int) -> int:
    """Milestone bonus for hitting exactly `streak` days (0 if not a milestone)"""
    reward_key = STREAK_MILESTONE_REWARDS.get(streak)
    return XP_REWARDS[reward_key] if reward_key else 0
