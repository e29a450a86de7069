"""Durable key-value persistence for engine records"""
from pathlib import Path
from typing import Optional

from src import config
from src.exceptions import ConfigurationError
from src.storage.kv_store import KeyValueStore, MemoryStore, JsonFileStore
from src.storage.redis_store import RedisStore


def create_store(
    backend: Optional[str] = None,
    data_path: Optional[Path] = None,
    redis_url: Optional[str] = None,
) -> KeyValueStore:
    """Build the configured storage backend"""
    backend = (backend or config.STORAGE_BACKEND).lower()

    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        return JsonFileStore(data_path or config.DATA_PATH)
    if backend == "redis":
        return RedisStore(redis_url or config.REDIS_URL)

    raise ConfigurationError(f"Unknown storage backend '{backend}'", config_key="STORAGE_BACKEND")


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "RedisStore",
    "create_store",
]
