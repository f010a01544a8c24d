"""Operations the external processor can call back into."""
from typing import Any, Dict, Optional

from apkara import replies
from apkara.context_store import ContextStore
from apkara.errors import InvalidRequest, TransportUnavailable
from apkara.logging_conf import logger
from apkara.queue.controller import QueueController
from apkara.transport import GatewayClient

MESSAGE_TYPES = ("text", "image")


class ControlService:
    """send message / send status / queue status / clear queue / clear context."""

    def __init__(self, gateway: GatewayClient, queue: QueueController, contexts: ContextStore):
        self.gateway = gateway
        self.queue = queue
        self.contexts = contexts

    def _quoted(self, chat_id: str, reply_to_original: bool) -> Optional[Dict[str, Any]]:
        if not reply_to_original:
            return None
        entry = self.contexts.get(chat_id)
        if entry is None or not entry.message_key:
            logger.info(f"No message context found for {chat_id} or missing message key")
            return None
        return entry.message_ref

    def _require_gateway(self):
        if not self.gateway.available:
            raise TransportUnavailable("WhatsApp socket not available")

    def send_message(self, chat_id: str, message: Any, message_type: str = "text", reply_to_original: bool = False) -> None:
        if not chat_id or not message:
            raise InvalidRequest("chat_id and message are required")
        if message_type not in MESSAGE_TYPES:
            raise InvalidRequest(f"message_type must be one of: {', '.join(MESSAGE_TYPES)}")
        self._require_gateway()

        quoted = self._quoted(chat_id, reply_to_original)

        if message_type == "image":
            if not isinstance(message, dict) or not message.get("url"):
                raise InvalidRequest("image messages need message.url")
            self.gateway.send_image(chat_id, message["url"], caption=message.get("caption") or "", quoted=quoted)
        else:
            self.gateway.send_text(chat_id, str(message), quoted=quoted)

        logger.info(f"Message sent to {chat_id}{' (as reply)' if quoted else ''}")

    def send_status(self, chat_id: str, status: str, data: Optional[Dict[str, Any]] = None, reply_to_original: bool = True) -> str:
        if not chat_id or not status:
            raise InvalidRequest("chat_id and status are required")
        self._require_gateway()

        text = replies.status_message(status, data)
        quoted = self._quoted(chat_id, reply_to_original)
        self.gateway.send_text(chat_id, text, quoted=quoted)

        logger.info(f"Status sent to {chat_id}{' (as reply)' if quoted else ''}: {status}")
        self.contexts.sweep()
        return text

    def queue_status(self) -> Dict[str, Any]:
        return self.queue.status().to_dict()

    def clear_queue(self) -> int:
        return self.queue.clear()

    def clear_context(self, chat_id: Optional[str] = None) -> None:
        if chat_id:
            self.contexts.delete(chat_id)
        else:
            self.contexts.clear()
