"""The ap kara command: chat message in, queued record out."""
from typing import Callable, Optional

from apkara import replies, settings
from apkara.context_store import ContextStore
from apkara.driver_info import after_driver_text, parse_driver_info
from apkara.errors import ApKaraError, ExtractionIncomplete, MissingQuotedContext
from apkara.extractor import extract, overlay
from apkara.logging_conf import logger
from apkara.products import classify_product
from apkara.queue.controller import QueueController
from apkara.record import StructuredRecord, validate
from apkara.transport import GatewayClient, InboundMessage


def build_record(text: str, quoted_text: Optional[str]) -> StructuredRecord:
    """Extract and merge a record from a command and the message it quotes.

    Pure: no I/O. Raises MissingQuotedContext when the command quotes nothing
    usable. The result is not yet normalized or validated.
    """
    if quoted_text is None:
        raise MissingQuotedContext(replies.NO_QUOTED_MESSAGE)
    if not quoted_text.strip():
        raise MissingQuotedContext(replies.NO_QUOTED_TEXT)

    record = extract(quoted_text)
    record.product_type = classify_product(quoted_text)

    driver = parse_driver_info(text)
    if driver.found:
        record.driver_name = driver.driver_name
        record.driver_license = driver.driver_license
        record = overlay(record, driver.additional)

    reply_product = classify_product(after_driver_text(text))
    if reply_product:
        record.product_type = reply_product

    return record


class CommandHandler:
    """Filters inbound chat messages and runs the ap kara pipeline."""

    def __init__(
        self,
        gateway: GatewayClient,
        queue: QueueController,
        contexts: ContextStore,
        group_name: str = None,
        trigger: str = None,
        group_lookup: Callable[[str], Optional[str]] = None,
    ):
        self.gateway = gateway
        self.queue = queue
        self.contexts = contexts
        self.group_name = group_name or settings.WATCHED_GROUP
        self.trigger = (trigger or settings.TRIGGER_PHRASE).lower()
        self.group_lookup = group_lookup or gateway.group_subject

    def accepts(self, message: InboundMessage) -> bool:
        """Only trigger-phrase messages from other people in the watched group."""
        if message.from_me or not message.is_group:
            return False
        if self.trigger not in (message.text or "").lower():
            return False

        try:
            subject = self.group_lookup(message.chat_id)
        except ApKaraError as e:
            logger.error(f"Error getting group metadata for {message.chat_id}: {e}")
            return False

        if subject != self.group_name:
            logger.debug(f"Ignoring command from group {subject!r}")
            return False
        return True

    def handle(self, message: InboundMessage) -> Optional[StructuredRecord]:
        """Run the pipeline for one inbound message.

        Returns the queued record, or None when the message was ignored or
        rejected. User-facing problems are replied in the chat.
        """
        if not self.accepts(message):
            return None

        logger.info(f"Ap kara command accepted from {message.push_name or message.participant or 'unknown'}")
        self.contexts.put(message.chat_id, message.raw)

        try:
            return self._process(message)
        except ExtractionIncomplete as e:
            logger.info(f"Missing fields: {', '.join(e.missing)}")
            self._reply(message, replies.missing_fields_message(e.missing))
        except MissingQuotedContext as e:
            logger.info(f"Rejected command: {e}")
            self._reply(message, str(e))
        except Exception as e:
            logger.error(f"Error in ap kara command: {e}", exc_info=True)
            self._reply(message, replies.COMMAND_ERROR)
        return None

    def _process(self, message: InboundMessage) -> StructuredRecord:
        text = message.text
        if text.lower().strip().startswith(self.trigger):
            record = build_record(text, message.quoted_text if message.has_quoted else None)
        else:
            # Trigger somewhere in the text but not a command line: only the
            # quoted product can be recovered, validation reports the rest
            record = StructuredRecord()
            if message.quoted_text:
                record.product_type = classify_product(message.quoted_text)

        record = validate(record)

        position = self.queue.enqueue(message.chat_id, record, message.raw)
        self._send(message.chat_id, replies.queued_message(position))
        return record

    def _reply(self, message: InboundMessage, text: str):
        self._send(message.chat_id, text, quoted=message.raw)

    def _send(self, chat_id: str, text: str, quoted=None):
        try:
            self.gateway.send_text(chat_id, text, quoted=quoted)
        except ApKaraError as e:
            logger.error(f"Failed to send reply to {chat_id}: {e}")
