"""Per-item dispatch: call the processor, then tell the chat how it went."""
from pathlib import Path
from typing import Any, Dict, Optional

from apkara import replies, settings
from apkara.context_store import ContextStore
from apkara.errors import ApKaraError, DispatchFailure
from apkara.logging_conf import logger
from apkara.processor_client import ProcessorClient
from apkara.queue.models import QueueItem
from apkara.transport import GatewayClient


class Dispatcher:
    """Queue item handler.

    Raises DispatchFailure after replying so the queue logs the item as
    failed; reply errors themselves are only logged.
    """

    def __init__(
        self,
        processor: ProcessorClient,
        gateway: GatewayClient,
        contexts: ContextStore,
        screenshot_recipient: Optional[str] = None,
        screenshot_path: Optional[str] = None,
        error_screenshot_path: Optional[str] = None,
    ):
        self.processor = processor
        self.gateway = gateway
        self.contexts = contexts
        self.screenshot_recipient = screenshot_recipient or settings.SCREENSHOT_RECIPIENT
        self.screenshot_path = Path(screenshot_path or settings.SCREENSHOT_PATH)
        self.error_screenshot_path = Path(error_screenshot_path or settings.ERROR_SCREENSHOT_PATH)

    def __call__(self, item: QueueItem) -> Dict[str, Any]:
        return self.dispatch(item)

    def dispatch(self, item: QueueItem) -> Dict[str, Any]:
        original = item.original_message
        self.contexts.put(item.chat_id, original)

        try:
            body = self.processor.process(item.record, item.chat_id, original.get("key"))
        except DispatchFailure as e:
            self._notify_failure(item, e.detail)
            raise

        if body.get("status") == "success":
            processed_data = body.get("processed_data") or {}
            text = replies.success_message(item.record.weight, processed_data)
            if self._send_text(item.chat_id, text, quoted=original):
                logger.info("Success message sent to WhatsApp")
            self.send_screenshot()
        else:
            logger.warning(f"Processor returned status {body.get('status')!r} for {item.chat_id}; no reply sent")

        return body

    def send_screenshot(self) -> bool:
        """Best-effort: forward the details screenshot to the configured recipient."""
        if not self.screenshot_recipient:
            logger.debug("No screenshot recipient configured")
            return False
        if not self.screenshot_path.exists():
            logger.warning(f"Screenshot file not found: {self.screenshot_path}")
            return False

        try:
            self.gateway.send_image_file(self.screenshot_recipient, self.screenshot_path)
        except (ApKaraError, OSError) as e:
            logger.error(f"Error sending screenshot to recipient: {e}")
            return False

        logger.info(f"Screenshot sent to recipient: {self.screenshot_recipient}")
        return True

    def _notify_failure(self, item: QueueItem, detail: Optional[str]):
        text = replies.failure_message(detail)
        original = item.original_message

        if self.error_screenshot_path.exists():
            try:
                self.gateway.send_image_file(item.chat_id, self.error_screenshot_path, caption=text, quoted=original)
                logger.info("Error screenshot sent successfully")
                self.error_screenshot_path.unlink(missing_ok=True)
                logger.info("Error screenshot deleted from server")
                return
            except (ApKaraError, OSError) as e:
                logger.error(f"Failed to send or delete error screenshot: {e}")

        self._send_text(item.chat_id, text, quoted=original)

    def _send_text(self, chat_id: str, text: str, quoted: Optional[Dict[str, Any]] = None) -> bool:
        try:
            self.gateway.send_text(chat_id, text, quoted=quoted)
            return True
        except ApKaraError as e:
            logger.error(f"Failed to send reply to {chat_id}: {e}")
            return False
