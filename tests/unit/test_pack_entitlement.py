"""Unit tests for Pack Entitlement (src/gamification/pack_entitlement.py)"""
import pytest
from unittest.mock import MagicMock

from src.exceptions import StorageUnavailableError
from src.gamification.context import EngineContext
from src.gamification.pack_entitlement import (
    PACKS,
    claim_pack,
    get_available_packs,
    get_claimed_packs,
    get_pack_stats,
    get_pack_usage,
    has_claimed_pack,
    increment_pack_usage,
    is_pack_eligible,
)
from src.models.token import TokenBalance


# ============================================================================
# Eligibility Tests
# ============================================================================

class TestPackEligibility:
    """Test availability rules"""

    def test_free_pack_always_available(self):
        assert is_pack_eligible("practice_pack") is True
        assert is_pack_eligible("practice_pack", balance=None, wallet_connected=False) is True

    def test_premium_pack_needs_threshold(self):
        """Test balance 999 is refused for the gated pack, free pack still claimable"""
        assert is_pack_eligible("vibe_check_exclusive", balance=999) is False
        assert is_pack_eligible("practice_pack", balance=999) is True
        assert is_pack_eligible("vibe_check_exclusive", balance=1000) is True

    def test_premium_pack_needs_wallet(self):
        assert is_pack_eligible("vibe_check_exclusive", balance=5000, wallet_connected=False) is False

    def test_unknown_pack(self):
        assert is_pack_eligible("nope", balance=10**9) is False
        assert is_pack_eligible("", balance=10**9) is False

    def test_available_packs_follow_balance(self):
        assert [p.id for p in get_available_packs()] == ["practice_pack"]
        rich = TokenBalance(formatted_balance=1500, has_balance=True)
        assert [p.id for p in get_available_packs(rich)] == ["practice_pack", "vibe_check_exclusive"]

    def test_catalog(self):
        assert PACKS["practice_pack"].is_free is True
        assert PACKS["vibe_check_exclusive"].is_free is False
        assert PACKS["vibe_check_exclusive"].requires_wallet is True


# ============================================================================
# Claim Tests
# ============================================================================

class TestClaimPack:
    """Test one-time pack claims"""

    def test_claim_exactly_once(self, ctx, test_user_key):
        assert claim_pack(ctx, test_user_key, "practice_pack") is True
        assert claim_pack(ctx, test_user_key, "practice_pack") is False
        assert claim_pack(ctx, test_user_key, "practice_pack") is False

        assert has_claimed_pack(ctx, test_user_key, "practice_pack") is True
        assert len(get_claimed_packs(ctx, test_user_key)) == 1

    def test_repeat_claim_leaves_usage_alone(self, ctx, test_user_key):
        claim_pack(ctx, test_user_key, "practice_pack")
        increment_pack_usage(ctx, test_user_key, "practice_pack")

        claim_pack(ctx, test_user_key, "practice_pack")

        assert get_pack_stats(ctx, test_user_key, "practice_pack")["times_used"] == 1

    def test_ineligible_claim_refused(self, ctx, test_user_key):
        assert claim_pack(ctx, test_user_key, "vibe_check_exclusive", balance=999) is False
        assert has_claimed_pack(ctx, test_user_key, "vibe_check_exclusive") is False

    def test_premium_claim_with_balance(self, ctx, test_user_key):
        assert claim_pack(ctx, test_user_key, "vibe_check_exclusive", balance=1000) is True

    @pytest.mark.parametrize("user_key,pack_id", [
        ("", "practice_pack"),
        ("0xabc", ""),
        ("0xabc", None),
        ("0xabc", "unknown_pack"),
    ])
    def test_bad_arguments(self, ctx, user_key, pack_id):
        assert claim_pack(ctx, user_key, pack_id) is False
        assert ctx.store.keys() == []

    def test_persistence_failure(self, clock, test_user_key):
        store = MagicMock()
        store.get.return_value = None
        store.set.side_effect = StorageUnavailableError("down", key="k", backend="file")
        ctx = EngineContext(store=store, clock=clock)

        assert claim_pack(ctx, test_user_key, "practice_pack") is False

    def test_claim_is_per_user(self, ctx):
        assert claim_pack(ctx, "alice", "practice_pack") is True
        assert claim_pack(ctx, "bob", "practice_pack") is True


class TestPackUsage:
    """Test usage counters"""

    def test_stats_for_claimed_pack(self, ctx, clock, test_user_key):
        claim_pack(ctx, test_user_key, "practice_pack")
        for _ in range(3):
            assert increment_pack_usage(ctx, test_user_key, "practice_pack") is True

        stats = get_pack_stats(ctx, test_user_key, "practice_pack")
        assert stats["times_used"] == 3
        assert stats["claim_date"] == clock.current
        assert get_pack_usage(ctx, test_user_key) == {"practice_pack": 3}

    def test_unclaimed_pack_not_incremented(self, ctx, test_user_key):
        assert increment_pack_usage(ctx, test_user_key, "practice_pack") is False
        assert get_pack_stats(ctx, test_user_key, "practice_pack") == {"times_used": 0, "claim_date": None}
