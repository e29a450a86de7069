"""Unit tests for the Event Ledger (src/gamification/event_ledger.py)"""
import pytest
from datetime import date, timedelta
import logging
from unittest.mock import MagicMock, patch

from src.exceptions import StorageUnavailableError, ValidationError
from src.gamification.context import EngineContext
from src.gamification.event_ledger import (
    can_pull_today,
    complete_referral,
    count_words,
    daily_card_id,
    get_favorites,
    get_journal_entries,
    get_journal_entry,
    get_journal_stats,
    get_pulls,
    get_referral_count,
    get_share_count,
    get_shares_today,
    has_pulled_today,
    has_used_free_pull,
    is_favorite,
    normalize_user_key,
    record_free_pull,
    record_pull,
    record_referral,
    record_share,
    save_journal_entry,
    toggle_favorite,
)
from src.storage import records

from tests.helpers import at


# ============================================================================
# Pull Ledger Tests
# ============================================================================

class TestRecordPull:
    """Test daily pull recording"""

    def test_first_pull_is_recorded(self, ctx, test_user_key):
        """Test a first pull appends one row for today"""
        assert record_pull(ctx, test_user_key) is True

        pulls = get_pulls(ctx, test_user_key)
        assert len(pulls) == 1
        assert pulls[0].date == date(2024, 6, 5)
        assert 1 <= pulls[0].card_id <= 365

    def test_second_pull_same_day_is_idempotent(self, ctx, test_user_key):
        """Test pulling twice on one day leaves a single row"""
        assert record_pull(ctx, test_user_key, card_id=7) is True
        assert record_pull(ctx, test_user_key, card_id=8) is False

        pulls = get_pulls(ctx, test_user_key)
        assert len(pulls) == 1
        assert pulls[0].card_id == 7

    def test_explicit_date(self, ctx, test_user_key):
        """Test recording for an explicit ledger day"""
        assert record_pull(ctx, test_user_key, pull_date=date(2024, 1, 1)) is True
        assert get_pulls(ctx, test_user_key)[0].date == date(2024, 1, 1)

    def test_pulls_sorted_ascending(self, ctx, test_user_key):
        """Test ledger reads back in date order regardless of insert order"""
        for day in (date(2024, 6, 3), date(2024, 6, 1), date(2024, 6, 2)):
            record_pull(ctx, test_user_key, pulled_at=at(day))

        assert [p.date for p in get_pulls(ctx, test_user_key)] == [
            date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)
        ]

    @pytest.mark.parametrize("user_key", ["", "   ", None])
    def test_invalid_user_key(self, ctx, user_key):
        """Test missing user keys are rejected without writing"""
        assert record_pull(ctx, user_key) is False
        assert ctx.store.keys() == []

    def test_user_key_is_case_insensitive(self, ctx):
        """Test wallet addresses are normalized"""
        record_pull(ctx, "0xABC")
        assert len(get_pulls(ctx, " 0xabc ")) == 1
        assert ctx.store.keys() == ["practice_pulls:0xabc"]

    def test_write_failure_returns_false(self, clock, test_user_key):
        """Test a backend failure is reported as not recorded"""
        store = MagicMock()
        store.get.return_value = None
        store.set.side_effect = StorageUnavailableError("disk full", key="k", backend="file")
        ctx = EngineContext(store=store, clock=clock)

        assert record_pull(ctx, test_user_key) is False

    def test_read_failure_degrades_to_empty(self, clock, test_user_key):
        """Test an unreadable backend reads as an empty ledger"""
        store = MagicMock()
        store.get.side_effect = StorageUnavailableError("down", key="k", backend="redis")
        ctx = EngineContext(store=store, clock=clock)

        assert get_pulls(ctx, test_user_key) == []

    def test_corrupt_ledger_is_discarded(self, ctx, test_user_key):
        """Test a corrupt stored ledger reads as empty and can be rewritten"""
        ctx.store.set(records.record_key(records.PULLS, test_user_key), "{not json")

        assert get_pulls(ctx, test_user_key) == []
        assert record_pull(ctx, test_user_key) is True
        assert len(get_pulls(ctx, test_user_key)) == 1


class TestPullAvailability:
    """Test can_pull_today / has_pulled_today"""

    def test_can_pull_before_pulling(self, ctx, test_user_key):
        assert can_pull_today(ctx, test_user_key) is True
        assert has_pulled_today(ctx, test_user_key) is False

    def test_cannot_pull_twice(self, ctx, test_user_key):
        record_pull(ctx, test_user_key)
        assert can_pull_today(ctx, test_user_key) is False
        assert has_pulled_today(ctx, test_user_key) is True

    def test_can_pull_again_next_day(self, ctx, clock, test_user_key):
        record_pull(ctx, test_user_key)
        clock.advance(days=1)
        assert can_pull_today(ctx, test_user_key) is True

    def test_invalid_user_cannot_pull(self, ctx):
        assert can_pull_today(ctx, "") is False


class TestDailyCardId:
    """Test deterministic daily card selection"""

    def test_deterministic(self):
        day = date(2024, 6, 5)
        assert daily_card_id("0xabc", day) == daily_card_id("0xABC ", day)

    def test_in_range(self):
        for offset in range(50):
            card = daily_card_id("user", date(2024, 1, 1) + timedelta(days=offset), max_card_id=10)
            assert 1 <= card <= 10


def test_normalize_user_key():
    """Test user key normalization"""
    assert normalize_user_key("  0xABC ") == "0xabc"
    with pytest.raises(ValidationError):
        normalize_user_key("")


# ============================================================================
# Engagement Event Tests
# ============================================================================

class TestFavorites:
    """Test favorite toggling"""

    def test_toggle_adds_then_removes(self, ctx, test_user_key):
        assert toggle_favorite(ctx, test_user_key, 12, note="love this") is True
        assert is_favorite(ctx, test_user_key, 12) is True
        assert get_favorites(ctx, test_user_key)[0].note == "love this"

        assert toggle_favorite(ctx, test_user_key, 12) is False
        assert is_favorite(ctx, test_user_key, 12) is False

    def test_multiple_favorites(self, ctx, test_user_key):
        for card in (1, 2, 3):
            toggle_favorite(ctx, test_user_key, card)
        assert len(get_favorites(ctx, test_user_key)) == 3

    def test_lost_removal_is_logged(self, ctx, test_user_key, caplog):
        toggle_favorite(ctx, test_user_key, 12)
        failure = StorageUnavailableError("down", key="k", backend="file")

        with patch.object(ctx.store, "set", side_effect=failure):
            with caplog.at_level(logging.ERROR, logger="src.gamification.event_ledger"):
                assert toggle_favorite(ctx, test_user_key, 12) is False

        assert "NOT recorded" in caplog.text
        assert "removed card 12" not in caplog.text
        assert is_favorite(ctx, test_user_key, 12) is True


class TestShares:
    """Test share recording"""

    def test_share_count(self, ctx, test_user_key):
        record_share(ctx, test_user_key, 1, platform="farcaster")
        record_share(ctx, test_user_key, 1, platform="x")
        assert get_share_count(ctx, test_user_key) == 2

    def test_shares_today(self, ctx, clock, test_user_key):
        record_share(ctx, test_user_key, 1)
        clock.advance(days=1)
        record_share(ctx, test_user_key, 2)
        record_share(ctx, test_user_key, 3)
        assert get_shares_today(ctx, test_user_key) == 2


class TestReferrals:
    """Test referral lifecycle"""

    def test_referral_completion(self, ctx, test_user_key):
        assert record_referral(ctx, test_user_key, "Friend") is True
        assert get_referral_count(ctx, test_user_key) == 1
        assert get_referral_count(ctx, test_user_key, only_completed=True) == 0

        assert complete_referral(ctx, test_user_key, "friend") is True
        assert get_referral_count(ctx, test_user_key, only_completed=True) == 1

    def test_completion_only_once(self, ctx, test_user_key):
        record_referral(ctx, test_user_key, "friend")
        complete_referral(ctx, test_user_key, "friend")
        assert complete_referral(ctx, test_user_key, "friend") is False

    def test_duplicate_referral_ignored(self, ctx, test_user_key):
        record_referral(ctx, test_user_key, "friend")
        assert record_referral(ctx, test_user_key, "FRIEND") is False
        assert get_referral_count(ctx, test_user_key) == 1

    def test_self_referral_rejected(self, ctx, test_user_key):
        assert record_referral(ctx, test_user_key, test_user_key.upper()) is False

    def test_unknown_referral_not_completed(self, ctx, test_user_key):
        assert complete_referral(ctx, test_user_key, "stranger") is False


class TestJournal:
    """Test journal entries and stats"""

    def test_save_counts_words(self, ctx, test_user_key):
        entry = save_journal_entry(ctx, test_user_key, 5, ["I feel calm today", "grateful for rain"])

        assert entry is not None
        assert entry.word_count == 7
        assert entry.completed is True
        assert get_journal_entry(ctx, test_user_key, 5).word_count == 7

    def test_resave_replaces_entry(self, ctx, test_user_key):
        save_journal_entry(ctx, test_user_key, 5, ["short"])
        save_journal_entry(ctx, test_user_key, 5, ["a little longer now"])

        entries = get_journal_entries(ctx, test_user_key)
        assert len(entries) == 1
        assert entries[0].word_count == 4

    def test_blank_responses_not_completed(self, ctx, test_user_key):
        entry = save_journal_entry(ctx, test_user_key, 5, ["", "   "])
        assert entry.completed is False
        assert entry.word_count == 0

    def test_stats(self, ctx, clock, test_user_key):
        save_journal_entry(ctx, test_user_key, 1, ["one two three"])
        clock.advance(days=1)
        save_journal_entry(ctx, test_user_key, 2, ["one two three four five"])
        clock.advance(days=1)
        save_journal_entry(ctx, test_user_key, 3, ["one"])

        stats = get_journal_stats(ctx, test_user_key)
        assert stats.entries == 3
        assert stats.current_streak == 3
        assert stats.longest_streak == 3
        assert stats.total_words == 9
        assert stats.longest_entry == 5

    def test_empty_stats(self, ctx, test_user_key):
        assert get_journal_stats(ctx, test_user_key).entries == 0

    def test_count_words(self):
        assert count_words("  hello   there\nfriend ") == 3
        assert count_words("") == 0


class TestFreePull:
    """Test the onboarding free-pull flag"""

    def test_flag_lifecycle(self, ctx):
        assert has_used_free_pull(ctx, "0xWallet") is False
        assert record_free_pull(ctx, "0xWallet") is True
        assert has_used_free_pull(ctx, "0xwallet") is True

    def test_invalid_wallet(self, ctx):
        assert has_used_free_pull(ctx, "") is False
        assert record_free_pull(ctx, "") is False
