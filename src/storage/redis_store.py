"""
Redis persistence backend.

Provides synchronous Redis operations with:
- One string value per logical record
- Connection pooling via redis.from_url
- Failures surfaced as StorageUnavailableError
"""

import logging
from typing import Any, Optional

import redis

from src.exceptions import CorruptRecordError, StorageUnavailableError
from src.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """
    Redis-backed key-value store.

    The client is created lazily on first use so that building an engine
    context never blocks on the network.
    """

    name = "redis"

    def __init__(self, redis_url: str = "redis://localhost:6379/0", client: Optional[Any] = None):
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            client: Pre-built client (tests, shared pools)
        """
        self.redis_url = redis_url
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=10,
            )
            logger.info(f"Redis client created: {self.redis_url}")
        return self._client

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptRecordError(
                f"Redis value for '{key}' is not valid UTF-8",
                key=key,
                operation="get",
                cause=e
            )
        except redis.RedisError as e:
            raise StorageUnavailableError(
                f"Redis GET failed for '{key}': {e}",
                key=key,
                backend=self.name,
                operation="get",
                cause=e
            )
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
            logger.debug(f"Redis SET: {key}")
        except redis.RedisError as e:
            raise StorageUnavailableError(
                f"Redis SET failed for '{key}': {e}",
                key=key,
                backend=self.name,
                operation="set",
                cause=e
            )

    def delete(self, key: str) -> bool:
        try:
            return self.client.delete(key) > 0
        except redis.RedisError as e:
            raise StorageUnavailableError(
                f"Redis DELETE failed for '{key}': {e}",
                key=key,
                backend=self.name,
                operation="delete",
                cause=e
            )

    def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            try:
                self._client.close()
                logger.info("Redis connection closed")
            except redis.RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            self._client = None
