"""Queue data models."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from apkara.record import StructuredRecord


@dataclass(frozen=True)
class QueueItem:
    """A validated record waiting for the external processor."""

    chat_id: str  # Group jid the command came from
    record: StructuredRecord  # Uppercased, validated fields
    original_message: Dict[str, Any]  # Command message, quoted in replies
    item_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    added_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, chat_id: str, record: StructuredRecord, original_message: Dict[str, Any]):
        """Factory method to create a QueueItem."""
        return cls(
            chat_id=chat_id,
            record=record.sealed(),
            original_message=original_message,
        )


@dataclass(frozen=True)
class QueueStatus:
    """Point-in-time snapshot of the queue."""

    total_processed: int
    current_position: int
    last_processed_at: Optional[datetime]
    queue_length: int
    is_processing: bool
    next_chat_id: Optional[str] = None
    next_added_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        next_request = None
        if self.next_chat_id is not None:
            next_request = {
                "chatId": self.next_chat_id,
                "addedAt": self.next_added_at.isoformat() if self.next_added_at else None,
            }
        return {
            "totalProcessed": self.total_processed,
            "currentPosition": self.current_position,
            "lastProcessedAt": self.last_processed_at.isoformat() if self.last_processed_at else None,
            "queueLength": self.queue_length,
            "isProcessing": self.is_processing,
            "nextRequest": next_request,
        }
