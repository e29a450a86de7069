"""
Record-level persistence with graceful degradation.

Every logical record (a user's pull ledger, XP total, achievement set,
pack collection, ...) is read and written as one JSON document through a
pydantic TypeAdapter. Failures never reach the caller:

- backend unavailable on read  -> default value
- stored payload unparsable    -> corrupt record discarded, default value
- backend unavailable on write -> False
"""

import logging
from typing import Callable, TypeVar

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from src.exceptions import CorruptRecordError, StorageError, ValidationError
from src.monitoring.prometheus_metrics import track_storage_error
from src.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Namespaces (one logical record per concern per user)
PULLS = "practice_pulls"
XP = "practice_xp"
XP_TRANSACTIONS = "practice_xp_transactions"
ACHIEVEMENTS = "practice_achievements"
PACKS = "vibe_check_packs"
FREE_PULLS = "practice_free_pulls"
FAVORITES = "practice_favorites"
SHARES = "practice_shares"
REFERRALS = "practice_referrals"
JOURNAL = "practice_journal_entries"


def normalize_user_key(user_key: str) -> str:
    """
    Lower-case and strip a wallet address or username.

    Raises:
        ValidationError: if the key is missing or blank
    """
    if not isinstance(user_key, str) or not user_key.strip():
        raise ValidationError("user key is required", field="user_key", value=user_key)
    return user_key.strip().lower()


def record_key(namespace: str, user_key: str) -> str:
    """Storage key for a user's record in a namespace"""
    return f"{namespace}:{normalize_user_key(user_key)}"


def load_record(
    store: KeyValueStore,
    key: str,
    adapter: TypeAdapter,
    default_factory: Callable[[], T],
) -> T:
    """
    Load and validate one record.

    Args:
        store: Backend to read from
        key: Full storage key
        adapter: TypeAdapter for the record type
        default_factory: Builds the fallback value

    Returns:
        The stored record, or default_factory() when absent, unreadable or corrupt
    """
    try:
        raw = store.get(key)
    except StorageError as e:
        track_storage_error("load", type(e).__name__)
        logger.warning(f"Falling back to default for '{key}': {e.message}")
        return default_factory()

    if raw is None:
        return default_factory()

    try:
        return adapter.validate_json(raw)
    except (PydanticValidationError, ValueError) as e:
        CorruptRecordError(
            f"Discarding corrupt record: {e.__class__.__name__}",
            key=key,
            operation="load",
            cause=e
        )
        track_storage_error("load", "CorruptRecordError")
        return default_factory()


def save_record(store: KeyValueStore, key: str, adapter: TypeAdapter, value) -> bool:
    """
    Serialize and write one whole record.

    Returns:
        True if the backend accepted the write, False otherwise
    """
    try:
        payload = adapter.dump_json(value).decode("utf-8")
        store.set(key, payload)
        return True
    except StorageError as e:
        track_storage_error("save", type(e).__name__)
        logger.error(f"Record '{key}' was not persisted: {e.message}")
        return False
