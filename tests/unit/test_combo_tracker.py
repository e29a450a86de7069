"""Unit tests for Combo Tracker (src/gamification/combo_tracker.py)"""
import pytest
from datetime import datetime, timedelta, timezone

from src.gamification.combo_tracker import ComboTracker, get_combo_bonus

from tests.helpers import FixedClock


T0 = datetime(2024, 6, 5, 12, 0, tzinfo=timezone.utc)


def _t(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


class TestComboTracker:
    """Test combo counting and decay"""

    def test_actions_within_window_build_combo(self):
        """Test t=0s, 30s, 90s with a 300s window -> 3, then t=500s resets to 1"""
        tracker = ComboTracker(window_seconds=300)

        assert tracker.register_action("user", at=_t(0)) == 1
        assert tracker.register_action("user", at=_t(30)) == 2
        assert tracker.register_action("user", at=_t(90)) == 3
        assert tracker.get_current_combo("user", at=_t(90)) == 3

        assert tracker.register_action("user", at=_t(500)) == 1

    def test_gap_equal_to_window_continues(self):
        """Test the window boundary itself still counts"""
        tracker = ComboTracker(window_seconds=300)
        tracker.register_action("user", at=_t(0))
        assert tracker.register_action("user", at=_t(300)) == 2

    def test_expired_combo_reads_zero(self):
        tracker = ComboTracker(window_seconds=300)
        tracker.register_action("user", at=_t(0))
        tracker.register_action("user", at=_t(10))

        assert tracker.get_current_combo("user", at=_t(311)) == 0
        assert tracker.register_action("user", at=_t(320)) == 1

    def test_users_are_independent(self):
        tracker = ComboTracker(window_seconds=300)
        tracker.register_action("alice", at=_t(0))
        tracker.register_action("alice", at=_t(5))
        tracker.register_action("bob", at=_t(6))

        assert tracker.get_current_combo("alice", at=_t(10)) == 2
        assert tracker.get_current_combo("bob", at=_t(10)) == 1

    def test_user_keys_normalized(self):
        tracker = ComboTracker(window_seconds=300)
        tracker.register_action("0xABC", at=_t(0))
        assert tracker.register_action(" 0xabc", at=_t(1)) == 2

    def test_unknown_user(self):
        assert ComboTracker().get_current_combo("nobody", at=_t(0)) == 0

    def test_reset_single_user(self):
        tracker = ComboTracker(window_seconds=300)
        tracker.register_action("alice", at=_t(0))
        tracker.register_action("bob", at=_t(0))

        tracker.reset("alice")

        assert tracker.get_current_combo("alice", at=_t(1)) == 0
        assert tracker.get_current_combo("bob", at=_t(1)) == 1

    def test_reset_all(self):
        tracker = ComboTracker(window_seconds=300)
        tracker.register_action("alice", at=_t(0))
        tracker.register_action("bob", at=_t(0))

        tracker.reset()

        assert tracker.get_current_combo("alice", at=_t(1)) == 0
        assert tracker.get_current_combo("bob", at=_t(1)) == 0

    def test_uses_clock_when_no_time_given(self):
        clock = FixedClock(T0)
        tracker = ComboTracker(window_seconds=300, clock=clock)

        tracker.register_action("user")
        clock.advance(seconds=60)
        assert tracker.register_action("user") == 2
        clock.advance(seconds=301)
        assert tracker.get_current_combo("user") == 0


class TestComboBonus:
    """Test the combo bonus step function"""

    @pytest.mark.parametrize("combo,expected", [
        (0, 0), (1, 0), (2, 5), (3, 10), (4, 10), (5, 20), (9, 20), (10, 50), (100, 50),
    ])
    def test_default_tiers(self, combo, expected):
        assert get_combo_bonus(combo) == expected

    def test_non_decreasing(self):
        bonuses = [get_combo_bonus(n) for n in range(0, 30)]
        assert bonuses == sorted(bonuses)

    def test_custom_tiers(self):
        tiers = [(4, 40), (2, 20)]
        assert get_combo_bonus(3, tiers) == 20
        assert get_combo_bonus(4, tiers) == 40
