"""
Pack Entitlement

Bonus content packs: which ones a user may claim right now, and which
ones they have claimed (persisted as one collection record per user).

- practice_pack: free for everyone
- vibe_check_exclusive: connected wallet holding HOLDER_PACK_THRESHOLD tokens

Eligibility is evaluated from the balance passed in on every call;
nothing about it is cached.
"""

from typing import Dict, List, Optional
import logging

from pydantic import TypeAdapter

from src import config
from src.exceptions import ValidationError
from src.gamification.context import EngineContext
from src.gamification.token_gate import has_balance
from src.models.pack import Pack, PackClaim, PackCollection
from src.monitoring.prometheus_metrics import track_pack_claimed
from src.storage import records

logger = logging.getLogger(__name__)

PACKS: Dict[str, Pack] = {
    "practice_pack": Pack(
        id="practice_pack",
        name="Practice Pack",
        description="The daily affirmation deck, free for everyone.",
        card_range=(1, config.MAX_CARD_ID),
    ),
    "vibe_check_exclusive": Pack(
        id="vibe_check_exclusive",
        name="Vibe Check Exclusive",
        description="Holder-only affirmations for wallets with enough tokens.",
        card_range=(config.MAX_CARD_ID + 1, config.MAX_CARD_ID * 2),
        min_token_balance=config.HOLDER_PACK_THRESHOLD,
        requires_wallet=True,
    ),
}

_collection_adapter = TypeAdapter(PackCollection)


def get_pack(pack_id: str) -> Optional[Pack]:
    return PACKS.get(pack_id) if pack_id else None


def is_pack_eligible(pack_id: str, balance=None, wallet_connected: bool = True) -> bool:
    """
    Whether a pack is currently available.

    Args:
        pack_id: Pack identifier
        balance: TokenBalance, number, or None when unknown
        wallet_connected: Premium packs need a connected wallet
    """
    pack = get_pack(pack_id)
    if pack is None:
        return False
    if pack.is_free:
        return True
    if pack.requires_wallet and not wallet_connected:
        return False
    return has_balance(balance, pack.min_token_balance)


def get_available_packs(balance=None, wallet_connected: bool = True) -> List[Pack]:
    """Packs available for this balance, catalog order"""
    return [
        pack for pack_id, pack in PACKS.items()
        if is_pack_eligible(pack_id, balance, wallet_connected)
    ]


def _collection_key(user_key: str) -> Optional[str]:
    try:
        return records.record_key(records.PACKS, user_key)
    except ValidationError:
        return None


def _load_collection(ctx: EngineContext, key: Optional[str]) -> PackCollection:
    if key is None:
        return PackCollection()
    return records.load_record(ctx.store, key, _collection_adapter, PackCollection)


def get_claimed_packs(ctx: EngineContext, user_key: str) -> List[PackClaim]:
    return _load_collection(ctx, _collection_key(user_key)).claimed_packs


def has_claimed_pack(ctx: EngineContext, user_key: str, pack_id: str) -> bool:
    return any(c.pack_id == pack_id for c in get_claimed_packs(ctx, user_key))


def claim_pack(
    ctx: EngineContext,
    user_key: str,
    pack_id: str,
    balance=None,
    wallet_connected: bool = True,
) -> bool:
    """
    Claim a pack for a user.

    Returns:
        True when a new claim was persisted; False for missing arguments,
        an unknown or ineligible pack, an existing claim, or a failed write
    """
    key = _collection_key(user_key)
    if key is None or not pack_id:
        logger.warning(f"claim_pack called with missing arguments: user={user_key!r}, pack={pack_id!r}")
        return False

    if pack_id not in PACKS:
        logger.warning(f"{user_key} tried to claim unknown pack '{pack_id}'")
        return False

    if not is_pack_eligible(pack_id, balance, wallet_connected):
        logger.info(f"{user_key} is not eligible for pack '{pack_id}'")
        return False

    collection = _load_collection(ctx, key)
    if any(c.pack_id == pack_id for c in collection.claimed_packs):
        logger.debug(f"{user_key} already claimed pack '{pack_id}'")
        return False

    collection.claimed_packs.append(PackClaim(pack_id=pack_id, claim_date=ctx.now()))
    if not records.save_record(ctx.store, key, _collection_adapter, collection):
        return False

    track_pack_claimed(pack_id)
    logger.info(f"{user_key} claimed pack '{pack_id}'")
    return True


def get_pack_stats(ctx: EngineContext, user_key: str, pack_id: str) -> Dict[str, any]:
    """
    Usage for one pack.

    Returns:
        {'times_used': int, 'claim_date': datetime | None}
    """
    for claim in get_claimed_packs(ctx, user_key):
        if claim.pack_id == pack_id:
            return {"times_used": claim.times_used, "claim_date": claim.claim_date}
    return {"times_used": 0, "claim_date": None}


def increment_pack_usage(ctx: EngineContext, user_key: str, pack_id: str) -> bool:
    """Count one use of a claimed pack; unclaimed packs are left alone"""
    key = _collection_key(user_key)
    if key is None:
        return False

    collection = _load_collection(ctx, key)
    for claim in collection.claimed_packs:
        if claim.pack_id == pack_id:
            claim.times_used += 1
            return records.save_record(ctx.store, key, _collection_adapter, collection)
    return False


def get_pack_usage(ctx: EngineContext, user_key: str) -> Dict[str, int]:
    """pack_id -> times used, for claimed packs"""
    return {c.pack_id: c.times_used for c in get_claimed_packs(ctx, user_key)}
