"""
GamificationService - Progression Business Logic

Orchestrates the engine modules for each user action: eligibility,
ledger write, combo, XP, achievements and notifications. The modules in
src/gamification stay single-purpose; the reward rules live here.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime

from src.gamification import (
    achievement_system,
    event_ledger,
    pack_entitlement,
    streak_system,
    token_gate,
    xp_system,
)
from src.config import EVENING_HOURS, MORNING_HOURS, WEEKEND_DAYS
from src.gamification.combo_tracker import get_combo_bonus
from src.gamification.context import EngineContext
from src.gamification.metrics import build_metrics
from src.gamification.xp_system import XP_REWARDS
from src.models.achievement import Achievement
from src.models.notification import Notification, NotificationKind

logger = logging.getLogger(__name__)

# Journal entries at or above this many words earn the detailed bonus
DETAILED_JOURNAL_WORDS = 100


class GamificationService:
    """
    Service for progression features.

    Responsibilities:
    - Pull gating and recording
    - XP awarding (base, time-of-day, streak, combo, unlock rewards)
    - Achievement checking and unlocking
    - Progression notifications
    """

    def __init__(self, ctx: EngineContext):
        """
        Initialize GamificationService.

        Args:
            ctx: Engine context (store, clock, timezone, combos, notifier)
        """
        self.ctx = ctx
        logger.debug("GamificationService initialized")

    # ==========================================
    # Pulls
    # ==========================================

    def process_pull(
        self,
        user_key: str,
        balance=None,
        wallet_address: Optional[str] = None,
        card_id: Optional[int] = None,
        pack_id: Optional[str] = None,
        pulled_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Process the daily card pull.

        Args:
            user_key: Wallet address or username
            balance: TokenBalance, number, or None when unknown
            wallet_address: Connected wallet, for the free onboarding pull
            card_id: Card drawn (defaults to the user's daily card)
            pack_id: Claimed pack the card came from, if any
            pulled_at: Pull time (defaults to now)

        Returns:
            {
                'pulled': bool,
                'eligibility': PullEligibility,
                'card_id': int | None,
                'xp_awarded': int,
                'level_up': bool,
                'new_level': int,
                'current_streak': int,
                'combo': int,
                'combo_bonus': int,
                'achievements_unlocked': list,
                'message': str
            }
        """
        result = self._empty_result()
        result.update({"pulled": False, "eligibility": None, "card_id": None})

        try:
            eligibility = token_gate.check_pull_eligibility(self.ctx, user_key, balance, wallet_address)
            result["eligibility"] = eligibility
            if not eligibility.eligible:
                result["message"] = eligibility.message
                return result

            timestamp = pulled_at or self.ctx.now()
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=self.ctx.timezone)
            if not event_ledger.record_pull(self.ctx, user_key, card_id=card_id, pulled_at=timestamp):
                result["message"] = "Today's card is already in your journal."
                return result

            result["pulled"] = True
            pulls = event_ledger.get_pulls(self.ctx, user_key)
            pull_day = timestamp.astimezone(self.ctx.timezone).date()
            today_pull = next(p for p in pulls if p.date == pull_day)
            result["card_id"] = today_pull.card_id

            if eligibility.reason == "free_pull":
                event_ledger.record_free_pull(self.ctx, wallet_address or user_key)

            if pack_id:
                pack_entitlement.increment_pack_usage(self.ctx, user_key, pack_id)

            # Base and time-of-day XP
            self._award(user_key, XP_REWARDS["PULL_CARD"], "Pulled daily card", result)

            local = today_pull.timestamp.astimezone(self.ctx.timezone)
            if streak_system.in_hour_range(local.hour, MORNING_HOURS):
                self._award(user_key, XP_REWARDS["MORNING_PULL"], "Morning pull", result)
            elif streak_system.in_hour_range(local.hour, EVENING_HOURS):
                self._award(user_key, XP_REWARDS["EVENING_PULL"], "Evening pull", result)
            if today_pull.date.weekday() in WEEKEND_DAYS:
                self._award(user_key, XP_REWARDS["WEEKEND_PULL"], "Weekend pull", result)

            # Streak XP
            streak = streak_system.compute_streak(pulls)
            result["current_streak"] = streak.current
            if streak.current > 1:
                self._award(user_key, XP_REWARDS["STREAK_DAY"], f"{streak.current}-day streak", result)
            milestone_xp = xp_system.get_streak_milestone_reward(streak.current)
            if milestone_xp:
                self._award(user_key, milestone_xp, f"{streak.current}-day streak milestone", result)

            self._register_combo(user_key, timestamp, result)
            self._process_achievements(user_key, balance, result)
            self._notify_level_up(user_key, result)

            result["message"] = self._build_pull_message(result)

            logger.info(
                f"Gamification processed for pull: user={user_key}, "
                f"xp={result['xp_awarded']}, streak={result['current_streak']}, "
                f"achievements={len(result['achievements_unlocked'])}"
            )
            return result

        except Exception as e:
            logger.error(f"Error in pull gamification: {e}", exc_info=True)
            return result

    # ==========================================
    # Auxiliary engagement events
    # ==========================================

    def process_favorite(self, user_key: str, card_id: int, note: Optional[str] = None, balance=None) -> Dict[str, Any]:
        """
        Process a favorite toggle. Only adding a favorite is rewarded.

        Returns:
            Gamification result dict plus 'favorited': bool
        """
        result = self._empty_result()
        result["favorited"] = False

        try:
            if not event_ledger.toggle_favorite(self.ctx, user_key, card_id, note):
                return result

            result["favorited"] = True
            self._award(user_key, XP_REWARDS["FAVORITE_CARD"], f"Favorited card {card_id}", result)
            self._register_combo(user_key, self.ctx.now(), result)
            self._process_achievements(user_key, balance, result)
            self._notify_level_up(user_key, result)
            return result

        except Exception as e:
            logger.error(f"Error in favorite gamification: {e}", exc_info=True)
            return result

    def process_share(
        self,
        user_key: str,
        card_id: int,
        platform: Optional[str] = None,
        balance=None,
    ) -> Dict[str, Any]:
        """Process a card share"""
        result = self._empty_result()

        try:
            if not event_ledger.record_share(self.ctx, user_key, card_id, platform):
                return result

            self._award(user_key, XP_REWARDS["SHARE_CARD"], f"Shared card {card_id}", result)
            self._register_combo(user_key, self.ctx.now(), result)
            self._process_achievements(user_key, balance, result)
            self._notify_level_up(user_key, result)
            return result

        except Exception as e:
            logger.error(f"Error in share gamification: {e}", exc_info=True)
            return result

    def process_referral_completed(self, referrer_key: str, referred_user: str, balance=None) -> Dict[str, Any]:
        """
        Reward the referrer once a referred user pulls their first card.

        The first completed referral earns FIRST_REFERRAL, later ones REFERRAL.
        """
        result = self._empty_result()

        try:
            if not event_ledger.complete_referral(self.ctx, referrer_key, referred_user):
                return result

            completed = event_ledger.get_referral_count(self.ctx, referrer_key, only_completed=True)
            if completed == 1:
                self._award(referrer_key, XP_REWARDS["FIRST_REFERRAL"], "First referral completed", result)
            else:
                self._award(referrer_key, XP_REWARDS["REFERRAL"], f"Referral #{completed} completed", result)

            self._process_achievements(referrer_key, balance, result)
            self._notify_level_up(referrer_key, result)
            return result

        except Exception as e:
            logger.error(f"Error in referral gamification: {e}", exc_info=True)
            return result

    def process_journal_entry(
        self,
        user_key: str,
        card_id: int,
        responses: Sequence[str],
        balance=None,
    ) -> Dict[str, Any]:
        """
        Process a journal entry for a card.

        Re-saving an entry replaces it; XP is only awarded the first time a
        card's entry (or its detailed bonus) is earned.

        Returns:
            Gamification result dict plus 'entry': JournalEntry | None
        """
        result = self._empty_result()
        result["entry"] = None

        try:
            previous = event_ledger.get_journal_entry(self.ctx, user_key, card_id)
            entry = event_ledger.save_journal_entry(self.ctx, user_key, card_id, responses)
            if entry is None:
                return result
            result["entry"] = entry

            if previous is None and entry.completed:
                self._award(user_key, XP_REWARDS["JOURNAL_ENTRY"], f"Journal entry for card {card_id}", result)
                self._register_combo(user_key, self.ctx.now(), result)

            was_detailed = previous is not None and previous.word_count >= DETAILED_JOURNAL_WORDS
            if entry.word_count >= DETAILED_JOURNAL_WORDS and not was_detailed:
                self._award(user_key, XP_REWARDS["DETAILED_JOURNAL"], "Detailed journal entry", result)

            self._process_achievements(user_key, balance, result)
            self._notify_level_up(user_key, result)
            return result

        except Exception as e:
            logger.error(f"Error in journal gamification: {e}", exc_info=True)
            return result

    # ==========================================
    # Achievements
    # ==========================================

    def check_achievements(self, user_key: str, balance=None) -> List[Dict[str, Any]]:
        """
        Re-check achievements outside an action (e.g. after a balance change).

        Returns:
            Newly unlocked achievements (see _achievement_to_dict)
        """
        result = self._empty_result()
        try:
            self._process_achievements(user_key, balance, result)
            self._notify_level_up(user_key, result)
        except Exception as e:
            logger.error(f"Error checking achievements: {e}", exc_info=True)
        return result["achievements_unlocked"]

    def _process_achievements(self, user_key: str, balance, result: Dict[str, Any]) -> int:
        """
        Unlock achievements and award unlock XP.

        Unlock XP can raise the level and unlock level achievements, so
        this repeats until a pass unlocks nothing.

        Returns:
            Total XP awarded from achievements
        """
        total_xp = 0
        for _ in range(len(achievement_system.ACHIEVEMENTS)):
            metrics = build_metrics(self.ctx, user_key, balance)
            unlocked = achievement_system.check_and_unlock_achievements(self.ctx, user_key, metrics)
            if not unlocked:
                break

            for achievement in unlocked:
                xp = self._award(
                    user_key, XP_REWARDS["ACHIEVEMENT_UNLOCK"], f"Achievement: {achievement.name}", result
                )
                total_xp += xp
                result["achievements_unlocked"].append(self._achievement_to_dict(achievement, xp))
                self.ctx.notifier.notify(Notification(
                    kind=NotificationKind.ACHIEVEMENT_UNLOCKED,
                    user_key=user_key,
                    message=f"{achievement.icon} {achievement.name} unlocked!",
                    created_at=self.ctx.now(),
                    payload={"achievement_id": achievement.id, "xp_reward": xp},
                ))

        return total_xp

    @staticmethod
    def _achievement_to_dict(achievement: Achievement, xp_reward: int) -> Dict[str, Any]:
        return {
            "achievement_id": achievement.id,
            "name": achievement.name,
            "description": achievement.description,
            "icon": achievement.icon,
            "category": achievement.category.value,
            "xp_reward": xp_reward,
        }

    # ==========================================
    # Summary
    # ==========================================

    def get_progress_summary(self, user_key: str, balance=None) -> Dict[str, Any]:
        """
        Everything a progress screen shows, recomputed from the ledgers.

        Returns:
            {
                'level': LevelInfo,
                'current_streak': int,       # 0 once lapsed
                'longest_streak': int,
                'specialized_streaks': SpecializedStreaks,
                'streak_risk': str,
                'next_milestone': dict | None,
                'streak_multiplier': float,
                'total_pulls': int,
                'can_pull_today': bool,
                'combo': int,
                'tier': HolderTier | None,
                'tier_progress': TierProgress,
                'claimed_packs': list[PackClaim],
                'available_packs': list[str],
                'achievements_unlocked': int,
                'achievements_total': int,
                'unseen_achievements': list[str],
                'journal': JournalStats
            }
        """
        ctx = self.ctx
        pulls = event_ledger.get_pulls(ctx, user_key)
        streak = streak_system.compute_streak(pulls)
        active_streak = streak_system.get_active_streak(pulls, ctx.today())
        unlocked = achievement_system.get_user_achievements(ctx, user_key)

        return {
            "level": xp_system.get_level_info(ctx, user_key),
            "current_streak": active_streak,
            "longest_streak": streak.longest,
            "specialized_streaks": streak_system.compute_specialized_streaks(pulls, ctx.timezone),
            "streak_risk": streak_system.get_streak_risk(pulls, ctx.now()),
            "next_milestone": streak_system.get_next_streak_milestone(active_streak),
            "streak_multiplier": streak_system.get_streak_xp_multiplier(active_streak),
            "total_pulls": len(pulls),
            "can_pull_today": event_ledger.can_pull_today(ctx, user_key),
            "combo": ctx.combos.get_current_combo(user_key),
            "tier": token_gate.classify_tier(balance),
            "tier_progress": token_gate.get_tier_progress(balance),
            "claimed_packs": pack_entitlement.get_claimed_packs(ctx, user_key),
            "available_packs": [p.id for p in pack_entitlement.get_available_packs(balance)],
            "achievements_unlocked": len(unlocked),
            "achievements_total": len(achievement_system.ACHIEVEMENTS),
            "unseen_achievements": [r.achievement_id for r in unlocked if not r.seen],
            "journal": event_ledger.get_journal_stats(ctx, user_key),
        }

    # ==========================================
    # Helpers
    # ==========================================

    def _award(self, user_key: str, amount: int, reason: str, result: Dict[str, Any]) -> int:
        """Award XP and fold the outcome into result"""
        xp_result = xp_system.award_xp(self.ctx, user_key, amount, reason)
        result["xp_awarded"] += xp_result["xp_awarded"]
        result["new_level"] = xp_result["new_level"]
        result["levels_gained"].extend(xp_result["levels_gained"])
        if xp_result["leveled_up"]:
            result["level_up"] = True
        return xp_result["xp_awarded"]

    def _register_combo(self, user_key: str, at: datetime, result: Dict[str, Any]) -> None:
        combo = self.ctx.combos.register_action(user_key, at)
        result["combo"] = combo

        bonus = get_combo_bonus(combo)
        if not bonus:
            return

        awarded = self._award(user_key, bonus, f"{combo}x combo", result)
        result["combo_bonus"] = awarded
        self.ctx.notifier.notify(Notification(
            kind=NotificationKind.COMBO_BONUS,
            user_key=user_key,
            message=f"{combo}x combo! +{awarded} XP",
            created_at=self.ctx.now(),
            payload={"combo": combo, "bonus_xp": awarded},
        ))

    def _notify_level_up(self, user_key: str, result: Dict[str, Any]) -> None:
        if not result["levels_gained"]:
            return
        new_level = max(result["levels_gained"])
        self.ctx.notifier.notify(Notification(
            kind=NotificationKind.LEVEL_UP,
            user_key=user_key,
            message=f"Level up! You're now level {new_level}",
            created_at=self.ctx.now(),
            payload={"levels_gained": list(result["levels_gained"]), "new_level": new_level},
        ))

    def _build_pull_message(self, result: Dict[str, Any]) -> str:
        """Short user-facing summary of a pull"""
        parts = [f"+{result['xp_awarded']} XP"]

        streak = result["current_streak"]
        if streak > 1:
            parts.append(f"🔥 {streak}-day streak")

        if result["combo_bonus"]:
            parts.append(f"⚡ {result['combo']}x combo")

        if result["level_up"]:
            parts.append(f"🎉 Level {result['new_level']}!")

        for achievement in result["achievements_unlocked"]:
            parts.append(f"{achievement['icon']} {achievement['name']}")

        return " | ".join(parts)

    def _empty_result(self) -> Dict[str, Any]:
        """Result with nothing awarded"""
        return {
            "xp_awarded": 0,
            "level_up": False,
            "new_level": 1,
            "levels_gained": [],
            "current_streak": 0,
            "combo": 0,
            "combo_bonus": 0,
            "achievements_unlocked": [],
            "message": "",
        }
