"""
Achievement metrics

Builds the AchievementMetrics snapshot from the ledgers. Everything is
recomputed from raw records on each call.
"""

import logging

from src.gamification import event_ledger, pack_entitlement, streak_system, xp_system
from src.gamification.context import EngineContext
from src.gamification.token_gate import balance_amount
from src.models.achievement import AchievementMetrics

logger = logging.getLogger(__name__)


def build_metrics(ctx: EngineContext, user_key: str, balance=None) -> AchievementMetrics:
    """
    Snapshot of everything achievement predicates read

    Args:
        ctx: Engine context
        user_key: Wallet address or username
        balance: TokenBalance, number, or None when unknown (counts as 0)
    """
    pulls = event_ledger.get_pulls(ctx, user_key)
    streak = streak_system.compute_streak(pulls)
    specialized = streak_system.compute_specialized_streaks(pulls, ctx.timezone)
    pull_dates = [p.date for p in pulls]
    broken = streak_system.longest_broken_streak(pull_dates)
    journal = event_ledger.get_journal_stats(ctx, user_key)
    pack_usage = pack_entitlement.get_pack_usage(ctx, user_key)

    local_times = [p.timestamp.astimezone(ctx.timezone) for p in pulls]

    metrics = AchievementMetrics(
        streak=streak.current,
        longest_streak=streak.longest,
        total_pulls=len(pulls),
        favorites=len(event_ledger.get_favorites(ctx, user_key)),
        shares=event_ledger.get_share_count(ctx, user_key),
        referrals=event_ledger.get_referral_count(ctx, user_key, only_completed=True),
        morning_streak=specialized.morning.current,
        evening_streak=specialized.evening.current,
        weekend_streak=specialized.weekend.current,
        level=xp_system.get_level_info(ctx, user_key).level,
        streak_broken=streak_system.has_rebuilt_streak(pull_dates),
        longest_broken_streak=broken,
        journal_entries=journal.entries,
        journal_streak=journal.current_streak,
        total_journal_words=journal.total_words,
        longest_journal_entry=journal.longest_entry,
        token_balance=balance_amount(balance) or 0,
        packs_claimed=len(pack_usage),
        pack_usage=pack_usage,
        combo=ctx.combos.get_current_combo(user_key),
        pulled_on_new_year=any(p.date.month == 1 and p.date.day == 1 for p in pulls),
        pulled_at_midnight=any(t.hour == 0 and t.minute == 0 for t in local_times),
    )
    logger.debug(f"Built achievement metrics for {user_key}: {metrics.model_dump()}")
    return metrics
