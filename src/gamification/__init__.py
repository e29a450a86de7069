"""
Progression engine for the daily affirmation card pull

This package implements the rules behind the daily pull:
- Event ledger (pulls, favorites, shares, referrals, journal)
- Streaks (overall, morning, evening, weekend)
- Session combos
- XP and leveling
- Token gating and holder tiers
- Content pack entitlement
- Achievements

Every call takes an explicit EngineContext (see context.create_context).
"""

from src.gamification.context import EngineContext, create_context
from src.gamification.event_ledger import record_pull, get_pulls, can_pull_today, daily_card_id
from src.gamification.streak_system import compute_streak, compute_specialized_streaks, is_streak_broken
from src.gamification.combo_tracker import ComboTracker, get_combo_bonus
from src.gamification.xp_system import award_xp, get_user_xp, get_level_info, calculate_level_from_xp
from src.gamification.token_gate import has_balance, classify_tier, check_pull_eligibility
from src.gamification.pack_entitlement import PACKS, claim_pack, get_available_packs, is_pack_eligible
from src.gamification.achievement_system import (
    ACHIEVEMENTS,
    check_and_unlock_achievements,
    get_user_achievements,
)
from src.gamification.metrics import build_metrics

__all__ = [
    "EngineContext",
    "create_context",
    "record_pull",
    "get_pulls",
    "can_pull_today",
    "daily_card_id",
    "compute_streak",
    "compute_specialized_streaks",
    "is_streak_broken",
    "ComboTracker",
    "get_combo_bonus",
    "award_xp",
    "get_user_xp",
    "get_level_info",
    "calculate_level_from_xp",
    "has_balance",
    "classify_tier",
    "check_pull_eligibility",
    "PACKS",
    "claim_pack",
    "get_available_packs",
    "is_pack_eligible",
    "ACHIEVEMENTS",
    "check_and_unlock_achievements",
    "get_user_achievements",
    "build_metrics",
]
