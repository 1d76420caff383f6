"""
Storage utility.

Key-value persistence for the reviews document and resource metadata.
Values are opaque strings (JSON documents); callers own the encoding.
"""

import os
import re
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the key-value store cannot be read or written."""


class KeyValueStore:
    """
    Minimal key-value interface.

    No locking and no versioning: a put is a full replace and the last
    writer wins.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def list_keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class FileKeyValueStore(KeyValueStore):
    """
    Stores one file per key under data_root/kv.

    Handles:
    - Reviews document (data/kv/reviews_data.json)
    - Resource metadata (data/kv/resource_metadata.json, ...)
    """

    _SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, data_root: str):
        """
        Initialize file store.

        Args:
            data_root: Root data directory (e.g., /path/to/data)
        """
        self.data_root = str(data_root)
        self.kv_dir = os.path.join(self.data_root, "kv")
        os.makedirs(self.kv_dir, exist_ok=True)

        logger.info(f"Initialized FileKeyValueStore with data_root={data_root}")

    def _path(self, key: str) -> str:
        if not key:
            raise StoreError("Empty key")
        return os.path.join(self.kv_dir, self._SAFE_KEY.sub("_", key) + ".json")

    def get(self, key: str) -> Optional[str]:
        filepath = self._path(key)

        if not os.path.exists(filepath):
            logger.debug(f"No value stored for {key}")
            return None

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            logger.error(f"Failed to read {key}: {e}")
            raise StoreError(f"Failed to read {key}") from e

    def put(self, key: str, value: str) -> None:
        """Atomic write: temp file, then rename over the old value."""
        filepath = self._path(key)
        temp_path = f"{filepath}.tmp"

        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(temp_path, filepath)
            logger.debug(f"Stored {len(value)} bytes under {key}")
        except OSError as e:
            logger.error(f"Failed to write {key}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise StoreError(f"Failed to write {key}") from e

    def delete(self, key: str) -> None:
        filepath = self._path(key)
        try:
            if os.path.exists(filepath):
                os.remove(filepath)
        except OSError as e:
            logger.error(f"Failed to delete {key}: {e}")
            raise StoreError(f"Failed to delete {key}") from e

    def list_keys(self, prefix: str = "") -> List[str]:
        keys = []
        for filename in os.listdir(self.kv_dir):
            if filename.endswith('.json'):
                key = filename[:-len('.json')]
                if key.startswith(prefix):
                    keys.append(key)
        return sorted(keys)


# Design Rationale and Trade-offs:
#
# 1. Why one JSON file per key?
#    - Mirrors a hosted key-value namespace (one opaque value per key)
#    - Files can be inspected and restored by hand
#    - Trade-off: list_keys is a directory scan
#
# 2. Why temp file + os.replace for writes?
#    - Readers never see a half-written document
#    - Trade-off: no protection against two writers; last one wins
#
# 3. Why are keys sanitised instead of rejected?
#    - Rate limit keys embed client ids such as "::1"
#    - Trade-off: two keys differing only in unsafe characters share a file
