"""
Rate Limiter - fixed-window counters in the key-value store.

Each client gets one small JSON document {"count", "expiresAt"} under
"rate_limit_<client id>". Counters live next to the cached documents
rather than in process memory, so every instance sees the same window
and a restart does not reset it.
"""

import json
import logging
import time
from typing import Callable, Optional

from src.utils.storage import KeyValueStore
import config.settings as settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window limiter keyed by client identifier.

    A window opens on the first hit and lasts window_seconds; up to
    `limit` hits are allowed inside it. Read-modify-write is not atomic,
    so two simultaneous hits from one client may both be counted once.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        limit: int = settings.CONTACT_RATE_LIMIT,
        window_seconds: int = settings.CONTACT_RATE_WINDOW_SECONDS,
        prefix: str = settings.RATE_LIMIT_KEY_PREFIX,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize limiter.

        Args:
            kv: Backing key-value store
            limit: Hits allowed per window
            window_seconds: Window length
            prefix: Key prefix for counter documents
            clock: Returns the current epoch seconds (injected in tests)
        """
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")

        self.kv = kv
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self.clock = clock or time.time

    def _key(self, client_id: str) -> str:
        return f"{self.prefix}{client_id or 'anonymous'}"

    def _read(self, key: str) -> Optional[dict]:
        try:
            raw = self.kv.get(key)
            if raw is None:
                return None
            window = json.loads(raw)
            count = int(window["count"])
            expires_at = float(window["expiresAt"])
        except (UnicodeDecodeError, ValueError, TypeError, KeyError, OverflowError) as e:
            logger.warning(f"Discarding unreadable rate limit window {key}: {e}")
            return None
        return {"count": count, "expiresAt": expires_at}

    def hit(self, client_id: str) -> bool:
        """
        Count one attempt.

        Returns:
            True if the attempt is within the limit, False if rejected.
            Rejected attempts are not counted.

        Raises:
            StoreError: If the counter cannot be read or written
        """
        key = self._key(client_id)
        now = self.clock()
        window = self._read(key)

        if window is None or window["expiresAt"] <= now:
            window = {"count": 0, "expiresAt": now + self.window_seconds}

        if window["count"] >= self.limit:
            logger.warning(f"Rate limit reached for {client_id}")
            return False

        window["count"] += 1
        self.kv.put(key, json.dumps(window))
        return True

    def remaining(self, client_id: str) -> int:
        window = self._read(self._key(client_id))
        if window is None or window["expiresAt"] <= self.clock():
            return self.limit
        return max(self.limit - window["count"], 0)

    def purge_expired(self) -> int:
        """Delete every expired or unreadable window. Returns how many went."""
        now = self.clock()
        removed = 0
        for key in self.kv.list_keys(self.prefix):
            window = self._read(key)
            if window is None or window["expiresAt"] <= now:
                self.kv.delete(key)
                removed += 1

        if removed:
            logger.info(f"Purged {removed} expired rate limit windows")
        return removed


# Design Rationale and Trade-offs:
#
# 1. Why a fixed window instead of a sliding one?
#    - One small document per client, one read and one write per hit
#    - Trade-off: a client can send up to 2x the limit around a window edge
#
# 2. Why are expired windows purged lazily?
#    - hit() resets an expired window in place
#    - purge_expired() is for clients that never come back
#    - Trade-off: stale counters stay on disk until a purge runs
