"""
Combo Tracker

Session-scoped count of rapid consecutive actions. A combo grows by one
for each action that lands within COMBO_WINDOW_SECONDS of the previous
one; a longer pause starts a fresh combo.

State lives only in memory: a restart or logout resets every combo.
"""

from typing import Callable, Dict, List, Optional, Tuple
from datetime import datetime, timedelta
import logging

from src.config import COMBO_BONUS_TIERS, COMBO_WINDOW_SECONDS
from src.models.progression import ComboState

logger = logging.getLogger(__name__)


def get_combo_bonus(combo: int, tiers: Optional[List[Tuple[int, int]]] = None) -> int:
    """
    Bonus XP for a combo count.

    Flat step function: the bonus of the highest tier whose minimum combo
    is reached, 0 below the first tier.

    Args:
        combo: Current combo count
        tiers: (minimum combo, bonus XP) pairs; defaults to COMBO_BONUS_TIERS
    """
    bonus = 0
    for min_combo, tier_bonus in sorted(tiers if tiers is not None else COMBO_BONUS_TIERS):
        if combo >= min_combo:
            bonus = max(bonus, tier_bonus)
    return bonus


class ComboTracker:
    """In-memory combo counters keyed by user"""

    def __init__(
        self,
        window_seconds: int = COMBO_WINDOW_SECONDS,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock or datetime.now
        self._combos: Dict[str, ComboState] = {}

    @staticmethod
    def _key(user_key: str) -> str:
        return str(user_key).strip().lower()

    def _expired(self, state: ComboState, at: datetime) -> bool:
        return state.last_action_at is None or at - state.last_action_at > self.window

    def register_action(self, user_key: str, at: Optional[datetime] = None) -> int:
        """
        Register a qualifying action.

        Returns:
            The new combo count
        """
        user_key = self._key(user_key)
        at = at or self._clock()
        state = self._combos.get(user_key, ComboState())

        if self._expired(state, at):
            if state.count:
                logger.debug(f"Combo for {user_key} expired at {state.count}")
            state = ComboState(count=0)

        state = ComboState(count=state.count + 1, last_action_at=at)
        self._combos[user_key] = state
        return state.count

    def get_current_combo(self, user_key: str, at: Optional[datetime] = None) -> int:
        """Current combo, or 0 once the window has lapsed"""
        user_key = self._key(user_key)
        state = self._combos.get(user_key)
        if state is None:
            return 0
        if self._expired(state, at or self._clock()):
            del self._combos[user_key]
            return 0
        return state.count

    def reset(self, user_key: Optional[str] = None) -> None:
        """Forget one user's combo, or everyone's"""
        if user_key is None:
            self._combos.clear()
        else:
            self._combos.pop(self._key(user_key), None)
