"""
Event Ledger

Append-only per-user records of daily pulls plus the auxiliary
engagement events the progression rules read:
- pulls (one per calendar day)
- favorites (toggle)
- shares
- referrals (completed once the referred user pulls)
- journal entries (one per card, re-saving replaces)
- free-pull / onboarding flag (keyed by wallet address)

Each concern is one record per user. Write failures are logged and
reported as False so callers never assume a pull was stored.
"""

from typing import List, Optional, Sequence
from datetime import date, datetime
import hashlib
import logging

from pydantic import TypeAdapter

from src.config import MAX_CARD_ID
from src.exceptions import ValidationError
from src.gamification.context import EngineContext
from src.gamification.streak_system import compute_streak_from_dates
from src.models.ledger import (
    FavoriteRecord,
    FreePullRecord,
    JournalEntry,
    JournalStats,
    PullRecord,
    ReferralRecord,
    ShareRecord,
)
from src.monitoring.prometheus_metrics import track_engagement_event, track_pull_recorded
from src.storage import records
from src.storage.records import normalize_user_key

logger = logging.getLogger(__name__)

_pulls_adapter = TypeAdapter(List[PullRecord])
_favorites_adapter = TypeAdapter(List[FavoriteRecord])
_shares_adapter = TypeAdapter(List[ShareRecord])
_referrals_adapter = TypeAdapter(List[ReferralRecord])
_journal_adapter = TypeAdapter(List[JournalEntry])
_free_pull_adapter = TypeAdapter(FreePullRecord)


def _key(namespace: str, user_key: str) -> Optional[str]:
    try:
        return records.record_key(namespace, user_key)
    except ValidationError:
        return None


def _load(ctx: EngineContext, key: Optional[str], adapter: TypeAdapter) -> list:
    if key is None:
        return []
    return records.load_record(ctx.store, key, adapter, list)


# ==========================================
# Pulls
# ==========================================

def daily_card_id(user_key: str, day: date, max_card_id: int = MAX_CARD_ID) -> int:
    """Deterministic card for a user on a given day, in 1..max_card_id"""
    seed = f"{user_key.strip().lower()}:{day.isoformat()}".encode("utf-8")
    digest = hashlib.sha256(seed).digest()
    return int.from_bytes(digest[:8], "big") % max_card_id + 1


def record_pull(
    ctx: EngineContext,
    user_key: str,
    pull_date: Optional[date] = None,
    card_id: Optional[int] = None,
    pulled_at: Optional[datetime] = None,
) -> bool:
    """
    Record the daily pull for `pull_date` (defaults to today).

    Idempotent per calendar day: a second pull for a day that is already
    in the ledger appends nothing.

    Args:
        ctx: Engine context
        user_key: Wallet address or username
        pull_date: Ledger day; defaults to the day of `pulled_at`
        card_id: Card drawn; defaults to daily_card_id()
        pulled_at: Pull time; defaults to ctx.now()

    Returns:
        True only when a new row was durably appended
    """
    key = _key(records.PULLS, user_key)
    if key is None:
        logger.warning("record_pull called without a user key")
        return False

    timestamp = pulled_at or ctx.now()
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=ctx.timezone)
    pull_date = pull_date or timestamp.astimezone(ctx.timezone).date()

    pulls = _load(ctx, key, _pulls_adapter)
    if any(p.date == pull_date for p in pulls):
        logger.debug(f"Pull for {user_key} on {pull_date} already recorded")
        return False

    record = PullRecord(
        date=pull_date,
        card_id=card_id if card_id is not None else daily_card_id(user_key, pull_date),
        timestamp=timestamp,
    )
    pulls.append(record)

    if not records.save_record(ctx.store, key, _pulls_adapter, pulls):
        logger.error(f"Pull for {user_key} on {pull_date} was NOT recorded")
        return False

    track_pull_recorded()
    logger.info(f"Recorded pull for {user_key} on {pull_date} (card {record.card_id})")
    return True


def get_pulls(ctx: EngineContext, user_key: str) -> List[PullRecord]:
    """Pull ledger ascending by date (stable for equal dates)"""
    pulls = _load(ctx, _key(records.PULLS, user_key), _pulls_adapter)
    return sorted(pulls, key=lambda p: p.date)


def has_pulled_today(ctx: EngineContext, user_key: str) -> bool:
    today = ctx.today()
    return any(p.date == today for p in get_pulls(ctx, user_key))


def can_pull_today(ctx: EngineContext, user_key: str) -> bool:
    """A valid user who has not pulled yet today"""
    if _key(records.PULLS, user_key) is None:
        return False
    return not has_pulled_today(ctx, user_key)


# ==========================================
# Favorites
# ==========================================

def get_favorites(ctx: EngineContext, user_key: str) -> List[FavoriteRecord]:
    return _load(ctx, _key(records.FAVORITES, user_key), _favorites_adapter)


def is_favorite(ctx: EngineContext, user_key: str, card_id: int) -> bool:
    return any(f.card_id == card_id for f in get_favorites(ctx, user_key))


def toggle_favorite(ctx: EngineContext, user_key: str, card_id: int, note: Optional[str] = None) -> bool:
    """
    Add or remove a favorite.

    Returns:
        True if the card is now a favorite, False if it was removed
        or the change could not be stored
    """
    key = _key(records.FAVORITES, user_key)
    if key is None:
        return False

    favorites = _load(ctx, key, _favorites_adapter)
    remaining = [f for f in favorites if f.card_id != card_id]

    if len(remaining) < len(favorites):
        if records.save_record(ctx.store, key, _favorites_adapter, remaining):
            logger.info(f"{user_key} removed card {card_id} from favorites")
        else:
            logger.error(f"Removing card {card_id} from {user_key}'s favorites was NOT recorded")
        return False

    remaining.append(FavoriteRecord(card_id=card_id, timestamp=ctx.now(), note=note))
    if not records.save_record(ctx.store, key, _favorites_adapter, remaining):
        return False

    track_engagement_event("favorite")
    logger.info(f"{user_key} favorited card {card_id}")
    return True


# ==========================================
# Shares
# ==========================================

def record_share(ctx: EngineContext, user_key: str, card_id: int, platform: Optional[str] = None) -> bool:
    key = _key(records.SHARES, user_key)
    if key is None:
        return False

    shares = _load(ctx, key, _shares_adapter)
    shares.append(ShareRecord(card_id=card_id, timestamp=ctx.now(), platform=platform))
    if not records.save_record(ctx.store, key, _shares_adapter, shares):
        return False

    track_engagement_event("share")
    logger.info(f"{user_key} shared card {card_id} to {platform or 'unknown platform'}")
    return True


def get_shares(ctx: EngineContext, user_key: str) -> List[ShareRecord]:
    """Shares, newest first"""
    shares = _load(ctx, _key(records.SHARES, user_key), _shares_adapter)
    return sorted(shares, key=lambda s: s.timestamp, reverse=True)


def get_share_count(ctx: EngineContext, user_key: str) -> int:
    return len(_load(ctx, _key(records.SHARES, user_key), _shares_adapter))


def get_shares_today(ctx: EngineContext, user_key: str) -> int:
    today = ctx.today()
    return sum(
        1 for s in _load(ctx, _key(records.SHARES, user_key), _shares_adapter)
        if s.timestamp.astimezone(ctx.timezone).date() == today
    )


# ==========================================
# Referrals
# ==========================================

def record_referral(ctx: EngineContext, referrer_key: str, referred_user: str) -> bool:
    """Register a referred user under the referrer (once per referred user)"""
    key = _key(records.REFERRALS, referrer_key)
    if key is None or not referred_user or not referred_user.strip():
        return False

    referred = referred_user.strip().lower()
    if referred == normalize_user_key(referrer_key):
        logger.warning(f"{referrer_key} tried to refer themselves")
        return False

    referrals = _load(ctx, key, _referrals_adapter)
    if any(r.referred_user == referred for r in referrals):
        return False

    referrals.append(ReferralRecord(referred_user=referred, timestamp=ctx.now()))
    if not records.save_record(ctx.store, key, _referrals_adapter, referrals):
        return False

    track_engagement_event("referral")
    logger.info(f"{referrer_key} referred {referred}")
    return True


def complete_referral(ctx: EngineContext, referrer_key: str, referred_user: str) -> bool:
    """
    Mark a referral completed (the referred user pulled their first card).

    Returns:
        True only on the pending -> completed transition
    """
    key = _key(records.REFERRALS, referrer_key)
    if key is None or not referred_user:
        return False

    referred = referred_user.strip().lower()
    referrals = _load(ctx, key, _referrals_adapter)
    for referral in referrals:
        if referral.referred_user == referred and not referral.completed:
            referral.completed = True
            referral.completed_at = ctx.now()
            if not records.save_record(ctx.store, key, _referrals_adapter, referrals):
                return False
            logger.info(f"Referral of {referred} by {referrer_key} completed")
            return True
    return False


def get_referral_count(ctx: EngineContext, user_key: str, only_completed: bool = False) -> int:
    referrals = _load(ctx, _key(records.REFERRALS, user_key), _referrals_adapter)
    if only_completed:
        return sum(1 for r in referrals if r.completed)
    return len(referrals)


# ==========================================
# Journal
# ==========================================

def count_words(text: str) -> int:
    return len(text.split())


def get_journal_entries(ctx: EngineContext, user_key: str) -> List[JournalEntry]:
    """Journal entries, newest first"""
    entries = _load(ctx, _key(records.JOURNAL, user_key), _journal_adapter)
    return sorted(entries, key=lambda e: e.timestamp, reverse=True)


def get_journal_entry(ctx: EngineContext, user_key: str, card_id: int) -> Optional[JournalEntry]:
    for entry in _load(ctx, _key(records.JOURNAL, user_key), _journal_adapter):
        if entry.card_id == card_id:
            return entry
    return None


def save_journal_entry(
    ctx: EngineContext,
    user_key: str,
    card_id: int,
    responses: Sequence[str],
) -> Optional[JournalEntry]:
    """
    Save (or replace) the journal entry for a card.

    Returns:
        The stored entry, or None if it could not be stored
    """
    key = _key(records.JOURNAL, user_key)
    if key is None:
        return None

    texts = [r for r in responses if r and r.strip()]
    entry = JournalEntry(
        card_id=card_id,
        timestamp=ctx.now(),
        responses=texts,
        word_count=sum(count_words(r) for r in texts),
        completed=bool(texts),
    )

    entries = [e for e in _load(ctx, key, _journal_adapter) if e.card_id != card_id]
    entries.append(entry)
    if not records.save_record(ctx.store, key, _journal_adapter, entries):
        return None

    track_engagement_event("journal")
    logger.info(f"{user_key} saved journal entry for card {card_id} ({entry.word_count} words)")
    return entry


def get_journal_stats(ctx: EngineContext, user_key: str) -> JournalStats:
    entries = _load(ctx, _key(records.JOURNAL, user_key), _journal_adapter)
    if not entries:
        return JournalStats()

    streak = compute_streak_from_dates(
        [e.timestamp.astimezone(ctx.timezone).date() for e in entries]
    )
    return JournalStats(
        entries=len(entries),
        current_streak=streak.current,
        longest_streak=streak.longest,
        total_words=sum(e.word_count for e in entries),
        longest_entry=max(e.word_count for e in entries),
    )


# ==========================================
# Free pull / onboarding flag
# ==========================================

def has_used_free_pull(ctx: EngineContext, wallet_address: str) -> bool:
    key = _key(records.FREE_PULLS, wallet_address)
    if key is None:
        return False
    return records.load_record(ctx.store, key, _free_pull_adapter, FreePullRecord).used


def record_free_pull(ctx: EngineContext, wallet_address: str) -> bool:
    key = _key(records.FREE_PULLS, wallet_address)
    if key is None:
        return False
    return records.save_record(
        ctx.store, key, _free_pull_adapter,
        FreePullRecord(used=True, timestamp=ctx.now())
    )
