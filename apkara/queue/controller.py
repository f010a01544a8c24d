"""In-memory FIFO queue with a single dispatch thread.

At most one item is handed to the processor at a time. Enqueue appends and
returns immediately; the first enqueue on an idle queue starts the drain
thread, later ones are picked up by the running thread.
"""
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, Optional

from apkara.logging_conf import logger
from apkara import settings
from apkara.queue.models import QueueItem, QueueStatus
from apkara.record import StructuredRecord

ItemHandler = Callable[[QueueItem], Any]


class QueueController:
    """Owns the request queue, its counters and the drain thread."""

    def __init__(self, handler: ItemHandler, pacing_seconds: float = None):
        self.handler = handler
        self.pacing_seconds = settings.QUEUE_PACING_SECONDS if pacing_seconds is None else pacing_seconds

        self._lock = threading.Lock()
        self._items: Deque[QueueItem] = deque()
        self._loop_active = False
        self._dispatching = False
        self._idle = threading.Event()
        self._idle.set()
        self._wake = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.total_processed = 0
        self.current_position = 0
        self.last_processed_at: Optional[datetime] = None

    def enqueue(self, chat_id: str, record: StructuredRecord, original_message: Dict[str, Any]) -> int:
        """Append an item and return its zero-based position at enqueue time."""
        item = QueueItem.create(chat_id=chat_id, record=record, original_message=original_message)

        with self._lock:
            self._items.append(item)
            position = len(self._items) - 1
            start_loop = not self._loop_active
            if start_loop:
                self._loop_active = True
                self._idle.clear()
                self._wake.clear()

        logger.info(f"Added request to queue. Queue length: {position + 1}")

        if start_loop:
            self._thread = threading.Thread(target=self._run, name="apkara-dispatch", daemon=True)
            self._thread.start()

        return position

    def status(self) -> QueueStatus:
        """Consistent snapshot of counters and queue head."""
        with self._lock:
            head = self._items[0] if self._items else None
            return QueueStatus(
                total_processed=self.total_processed,
                current_position=self.current_position,
                last_processed_at=self.last_processed_at,
                queue_length=len(self._items),
                is_processing=self._dispatching,
                next_chat_id=head.chat_id if head else None,
                next_added_at=head.added_at if head else None,
            )

    def clear(self) -> int:
        """Drop every queued item that has not started dispatching.

        An item already handed to the processor runs to completion; the drain
        thread then finds the queue empty and exits.
        """
        with self._lock:
            cleared = len(self._items)
            self._items.clear()
            in_flight = self._dispatching
            # Cut a pacing wait short
            self._wake.set()

        if in_flight:
            logger.info(f"Queue cleared. Removed {cleared} requests (one still in flight)")
        else:
            logger.info(f"Queue cleared. Removed {cleared} requests")
        return cleared

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._dispatching

    def wait_idle(self, timeout: float = None) -> bool:
        """Block until the drain thread has exited."""
        return self._idle.wait(timeout)

    def _next_item(self) -> Optional[QueueItem]:
        with self._lock:
            if not self._items:
                self._loop_active = False
                self._idle.set()
                return None
            item = self._items.popleft()
            self.current_position += 1
            self._dispatching = True
            return item

    def _run(self):
        """Main drain loop."""
        logger.info(f"Starting queue processing. Queue length: {len(self)}")

        while True:
            item = self._next_item()
            if item is None:
                break

            position = self.current_position
            logger.info(f"Processing request {position} - From: {item.chat_id}")

            succeeded = False
            try:
                self.handler(item)
                succeeded = True
            except Exception as e:
                logger.error(f"Error processing request {position}: {e}", exc_info=True)

            with self._lock:
                if succeeded:
                    self.total_processed += 1
                    self.last_processed_at = datetime.now(timezone.utc)
                self._dispatching = False
                remaining = len(self._items)
                # A wake left over from an earlier clear() must not skip this pause
                self._wake.clear()

            if succeeded:
                logger.info(f"Completed request {position}")

            if remaining and self.pacing_seconds > 0:
                logger.info(f"Waiting {self.pacing_seconds:g} seconds before next request...")
                self._wake.wait(self.pacing_seconds)

        logger.info(f"Queue processing completed. Total processed: {self.total_processed}")
