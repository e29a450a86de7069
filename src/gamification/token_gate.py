"""
Token Gate

Pure predicates over a token balance supplied by the wallet
collaborator. The engine never reads chain state itself.

Pull eligibility order:
1. already pulled today -> not eligible
2. first pull for this wallet -> free pull (onboarding)
3. balance >= MIN_VIBE_FOR_CARD_PULL -> eligible
4. otherwise needs tokens (or open access when gating is disabled)
"""

from typing import Optional
import logging

from src import config
from src.exceptions import ValidationError
from src.gamification.context import EngineContext
from src.gamification.event_ledger import has_pulled_today, has_used_free_pull
from src.models.token import HolderTier, PullEligibility, TierProgress, TokenBalance
from src.storage.records import normalize_user_key

logger = logging.getLogger(__name__)


def balance_amount(balance) -> Optional[float]:
    """Numeric amount of a TokenBalance or number (None when unknown)"""
    if balance is None:
        return None
    if isinstance(balance, TokenBalance):
        return balance.formatted_balance
    return float(balance)


def has_balance(balance, minimum_required: float) -> bool:
    """
    Whether a balance meets a minimum.

    Args:
        balance: TokenBalance, a number, or None (unknown)
        minimum_required: Required amount

    Returns:
        False for an unknown balance
    """
    amount = balance_amount(balance)
    if amount is None:
        return False
    return amount >= minimum_required


def get_tiers() -> list[HolderTier]:
    """Holder tiers ascending by threshold"""
    ordered = sorted(config.TOKEN_TIER_THRESHOLDS, key=lambda t: t[1])
    return [
        HolderTier(name=name, threshold=threshold, rank=rank)
        for rank, (name, threshold) in enumerate(ordered, start=1)
    ]


def classify_tier(balance) -> Optional[HolderTier]:
    """Highest tier the balance reaches, or None below the first tier"""
    current = None
    for tier in get_tiers():
        if has_balance(balance, tier.threshold):
            current = tier
    return current


def get_tier_progress(balance) -> TierProgress:
    """Current tier, next tier and progress toward it"""
    amount = balance_amount(balance) or 0
    current = classify_tier(amount)
    higher = [t for t in get_tiers() if current is None or t.rank > current.rank]
    upcoming = higher[0] if higher else None

    if upcoming is None:
        return TierProgress(current=current, next=None, tokens_remaining=0, progress_percent=100)

    floor = current.threshold if current else 0
    span = upcoming.threshold - floor
    progress = (amount - floor) / span * 100 if span > 0 else 100

    return TierProgress(
        current=current,
        next=upcoming,
        tokens_remaining=max(upcoming.threshold - amount, 0),
        progress_percent=min(max(progress, 0.0), 100.0),
    )


def check_pull_eligibility(
    ctx: EngineContext,
    user_key: str,
    balance=None,
    wallet_address: Optional[str] = None,
) -> PullEligibility:
    """
    Decide whether a user may pull today.

    Args:
        ctx: Engine context
        user_key: Wallet address or username
        balance: TokenBalance, number, or None when unknown
        wallet_address: Connected wallet (defaults to user_key); the free
            onboarding pull is tracked per wallet
    """
    try:
        normalize_user_key(user_key)
    except ValidationError:
        return PullEligibility(eligible=False, reason="invalid_user", message="Connect a wallet or pick a username first.")

    if has_pulled_today(ctx, user_key):
        return PullEligibility(
            eligible=False,
            reason="already_pulled",
            message="You've already pulled today's card. Come back tomorrow!"
        )

    wallet = wallet_address or user_key
    if not has_used_free_pull(ctx, wallet):
        return PullEligibility(eligible=True, reason="free_pull", message="Your first pull is on us.")

    if has_balance(balance, config.MIN_VIBE_FOR_CARD_PULL):
        return PullEligibility(eligible=True, reason="has_tokens", message="Holder access confirmed.")

    if not config.PULL_REQUIRES_TOKENS:
        return PullEligibility(eligible=True, reason="open_access", message="Pull your card for today.")

    logger.debug(f"{user_key} needs {config.MIN_VIBE_FOR_CARD_PULL} tokens to pull")
    return PullEligibility(
        eligible=False,
        reason="needs_tokens",
        message=f"Hold at least {config.MIN_VIBE_FOR_CARD_PULL:,} tokens to pull a card."
    )
