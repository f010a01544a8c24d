"""Tests for the ap kara command pipeline."""
from unittest.mock import MagicMock

import pytest

from apkara.command import CommandHandler, build_record
from apkara.errors import MissingQuotedContext, NotificationFailure
from apkara.transport import normalize_event

from .helpers import FakeGateway, GROUP_JID, make_event

CROPTEK_9 = "N 40 KG MAHADHAN CROPTEK 9:24:24"
CROPTEK_8 = "N 40 KG MAHADHAN CROPTEK NPK 8:21:21"

QUOTED = """mh12ab1234
SO 1234567890
9876543210
Pune 25 MT
C-9-24-24"""


@pytest.fixture
def queue():
    q = MagicMock()
    q.enqueue.return_value = 0
    return q


@pytest.fixture
def handler(gateway, queue, contexts):
    return CommandHandler(gateway, queue, contexts, group_name="Test", trigger="ap kara")


def message(text, quoted_text=None, **kwargs):
    return normalize_event(make_event(text, quoted_text=quoted_text, **kwargs))


class TestBuildRecord:
    """Pure merge of quoted message, driver line and reply extras."""

    def test_reference_flow(self):
        record = build_record("ap kara\nRAM KUMAR - 4521", QUOTED)

        assert record.vehicle_num == "mh12ab1234"
        assert record.so_no == "1234567890"
        assert record.phone_num == "9876543210"
        assert record.weight == "25"
        assert record.destination == "Pune"
        assert record.driver_name == "RAM KUMAR"
        assert record.driver_license == "4521"
        assert record.product_type == CROPTEK_9

    def test_reply_fields_override_quoted(self):
        record = build_record("ap kara\nRAM 4521 8888888888\nNAGPUR 30 MT", QUOTED)

        assert record.phone_num == "8888888888"
        assert record.weight == "30"
        assert record.destination == "NAGPUR"
        assert record.so_no == "1234567890"

    def test_reply_product_overrides_quoted(self):
        record = build_record("ap kara\nRAM 4521\nN-8", QUOTED)

        assert record.product_type == CROPTEK_8

    def test_reply_without_product_keeps_quoted(self):
        record = build_record("ap kara\nRAM 4521\nthanks", QUOTED)

        assert record.product_type == CROPTEK_9

    def test_no_quoted_message(self):
        with pytest.raises(MissingQuotedContext):
            build_record("ap kara\nRAM 4521", None)

    def test_quoted_message_without_text(self):
        with pytest.raises(MissingQuotedContext) as exc_info:
            build_record("ap kara\nRAM 4521", "")

        assert "original message" in str(exc_info.value)


class TestFiltering:
    """Only trigger messages from others in the watched group."""

    def test_other_group_ignored(self, queue, contexts):
        handler = CommandHandler(FakeGateway(subject="Other"), queue, contexts, group_name="Test", trigger="ap kara")

        assert handler.handle(message("ap kara\nRAM 4521", QUOTED)) is None
        queue.enqueue.assert_not_called()

    def test_private_chat_ignored(self, handler, queue):
        handler.handle(message("ap kara\nRAM 4521", QUOTED, chat_id="919800000000@s.whatsapp.net"))

        queue.enqueue.assert_not_called()

    def test_own_messages_ignored(self, handler, queue):
        handler.handle(message("ap kara\nRAM 4521", QUOTED, from_me=True))

        queue.enqueue.assert_not_called()

    def test_no_trigger_ignored(self, handler, queue, gateway):
        handler.handle(message("good morning"))

        queue.enqueue.assert_not_called()
        assert gateway.texts == []

    def test_trigger_is_case_insensitive(self, handler, queue):
        handler.handle(message("AP KARA\nRAM 4521", QUOTED))

        queue.enqueue.assert_called_once()

    def test_group_lookup_failure_ignored(self, queue, contexts, gateway):
        def lookup(chat_id):
            raise NotificationFailure("gateway down")

        handler = CommandHandler(gateway, queue, contexts, group_name="Test", trigger="ap kara", group_lookup=lookup)

        assert handler.handle(message("ap kara\nRAM 4521", QUOTED)) is None
        queue.enqueue.assert_not_called()


class TestHandle:
    def test_valid_command_is_queued(self, handler, queue, gateway, contexts):
        queue.enqueue.return_value = 2
        msg = message("ap kara\nram kumar - 4521", QUOTED)

        record = handler.handle(msg)

        assert record.vehicle_num == "MH12AB1234"
        assert record.driver_name == "RAM KUMAR"
        assert record.destination == "PUNE"

        chat_id, queued, original = queue.enqueue.call_args.args
        assert chat_id == GROUP_JID
        assert queued == record
        assert original == msg.raw

        assert gateway.texts[-1] == {"chat_id": GROUP_JID, "text": "⏳ *Processing* - Queue #2", "quoted": None}
        assert contexts.get(GROUP_JID).message_ref == msg.raw

    def test_missing_fields_reported(self, handler, queue, gateway):
        msg = message("ap kara\nRAM KUMAR 4521", "MH12AB1234\nPUNE 25 MT")

        assert handler.handle(msg) is None

        queue.enqueue.assert_not_called()
        assert gateway.texts == [{
            "chat_id": GROUP_JID,
            "text": "❌ *Details Missing*\n\nMissing: Phone Number, SO Number",
            "quoted": msg.raw,
        }]

    def test_missing_driver_line(self, handler, queue, gateway):
        handler.handle(message("ap kara", QUOTED))

        queue.enqueue.assert_not_called()
        assert gateway.texts[0]["text"].endswith("Missing: Driver Name, Driver License")

    def test_command_without_quote(self, handler, queue, gateway):
        msg = message("ap kara\nRAM 4521")

        handler.handle(msg)

        queue.enqueue.assert_not_called()
        assert gateway.texts == [{
            "chat_id": GROUP_JID,
            "text": "❌ Please reply to a message with 'ap kara' command",
            "quoted": msg.raw,
        }]

    def test_trigger_not_at_start_reports_missing(self, handler, queue, gateway):
        handler.handle(message("please ap kara", QUOTED))

        queue.enqueue.assert_not_called()
        assert gateway.texts[0]["text"].startswith("❌ *Details Missing*")

    def test_unexpected_error_replies_generic(self, handler, queue, gateway):
        queue.enqueue.side_effect = RuntimeError("boom")

        handler.handle(message("ap kara\nRAM 4521", QUOTED))

        assert gateway.texts[-1]["text"] == "❌ Error processing the command"

    def test_reply_send_failure_is_logged_only(self, handler, queue, gateway):
        gateway.fail_sends = True

        record = handler.handle(message("ap kara\nRAM 4521", QUOTED))

        assert record is not None
        queue.enqueue.assert_called_once()
