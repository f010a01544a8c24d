"""Per-chat reply context: the last original message to quote in replies."""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from apkara import settings
from apkara.logging_conf import logger


@dataclass(frozen=True)
class ContextEntry:
    message_ref: Any
    timestamp: float

    @property
    def message_key(self) -> Optional[Dict[str, Any]]:
        if isinstance(self.message_ref, dict):
            return self.message_ref.get("key")
        return None


class ContextStore:
    """Chat id -> most recent original message, expired after a TTL.

    Entries are never refreshed by reads; only `put` moves the timestamp.
    """

    def __init__(self, ttl_seconds: float = None, clock: Callable[[], float] = time.time):
        if ttl_seconds is None:
            ttl_seconds = settings.CONTEXT_TTL_HOURS * 60 * 60
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, ContextEntry] = {}
        self._lock = threading.Lock()

    def put(self, chat_id: str, message_ref: Any) -> None:
        with self._lock:
            self._entries[chat_id] = ContextEntry(message_ref=message_ref, timestamp=self._clock())
        logger.debug(f"Stored message context for {chat_id}")

    def get(self, chat_id: str) -> Optional[ContextEntry]:
        with self._lock:
            return self._entries.get(chat_id)

    def delete(self, chat_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(chat_id, None) is not None
        if removed:
            logger.info(f"Cleared message context for {chat_id}")
        return removed

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared all message contexts ({count})")
        return count

    def sweep(self, now: float = None) -> int:
        """Drop entries older than the TTL. Returns how many were removed."""
        if now is None:
            now = self._clock()
        cutoff = now - self.ttl_seconds

        with self._lock:
            expired = [chat_id for chat_id, entry in self._entries.items() if entry.timestamp < cutoff]
            for chat_id in expired:
                del self._entries[chat_id]

        if expired:
            logger.info(f"Cleaned up {len(expired)} old message contexts")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
