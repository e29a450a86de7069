"""
Key-value persistence backends.

The engine only needs durable string storage keyed by
"{namespace}:{user_key}". Each value is one whole logical record
serialized as JSON, so every write replaces a record atomically.
Backend failures are raised as StorageUnavailableError and handled
at the record layer (src/storage/records.py).
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from src.exceptions import CorruptRecordError, StorageUnavailableError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Durable string key-value storage"""

    name = "abstract"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent"""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value"""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key; returns True if something was deleted"""


class MemoryStore(KeyValueStore):
    """Process-local store. Nothing survives a restart."""

    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """
    One JSON file per key under a data directory.

    Writes go to a temp file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written record.
    """

    name = "file"

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)

    def _path_for(self, key: str) -> Path:
        # Keys contain ':' and wallet addresses; keep filenames portable
        return self.data_path / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise CorruptRecordError(
                f"{path} is not valid UTF-8",
                key=key,
                operation="get",
                cause=e
            )
        except OSError as e:
            raise StorageUnavailableError(
                f"Failed to read {path}: {e}",
                key=key,
                backend=self.name,
                operation="get",
                cause=e
            )

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_name = None
        try:
            self.data_path.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_path, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
            logger.debug(f"Wrote {path}")
        except OSError as e:
            raise StorageUnavailableError(
                f"Failed to write {path}: {e}",
                key=key,
                backend=self.name,
                operation="set",
                cause=e
            )
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageUnavailableError(
                f"Failed to delete {path}: {e}",
                key=key,
                backend=self.name,
                operation="delete",
                cause=e
            )
