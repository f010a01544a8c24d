"""Tests for the external processor client."""
from unittest.mock import MagicMock, patch

import pytest
import requests

from apkara.errors import DispatchFailure
from apkara.processor_client import ProcessorClient
from apkara.record import StructuredRecord

RECORD = StructuredRecord(
    vehicle_num="MH12AB1234",
    weight="25",
    so_no="1234567890",
    phone_num="9876543210",
    driver_license="4521",
    driver_name="RAM KUMAR",
    product_type="N 40 KG MAHADHAN CROPTEK 9:24:24",
)
KEY = {"remoteJid": "g@g.us", "id": "ABC", "fromMe": False}


def fake_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def client():
    return ProcessorClient(url="http://processor.local/process-data", timeout=300)


class TestPayload:
    def test_payload_carries_record_chat_and_key(self, client):
        payload = client.build_payload(RECORD, "g@g.us", KEY)

        assert payload["so_no"] == "1234567890"
        assert payload["destination"] is None
        assert payload["chat_id"] == "g@g.us"
        assert payload["message_key"] == KEY

    def test_request_uses_timeout(self, client):
        with patch.object(client.session, "request", return_value=fake_response(body={"status": "success"})) as req:
            client.process(RECORD, "g@g.us", KEY)

        kwargs = req.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "http://processor.local/process-data"
        assert kwargs["timeout"] == 300
        assert kwargs["json"]["driver_name"] == "RAM KUMAR"


class TestResponses:
    def test_success_body_returned(self, client):
        body = {"status": "success", "processed_data": {"actual_quantity": 24.5}}
        with patch.object(client.session, "request", return_value=fake_response(body=body)):
            assert client.process(RECORD, "g@g.us", KEY) == body

    def test_error_status_in_body(self, client):
        body = {"status": "error", "message": "SO already loaded"}
        with patch.object(client.session, "request", return_value=fake_response(body=body)):
            with pytest.raises(DispatchFailure) as exc_info:
                client.process(RECORD, "g@g.us", KEY)

        assert exc_info.value.detail == "SO already loaded"

    def test_http_error_with_error_field(self, client):
        body = {"error": "portal login failed"}
        with patch.object(client.session, "request", return_value=fake_response(500, body)):
            with pytest.raises(DispatchFailure) as exc_info:
                client.process(RECORD, "g@g.us", KEY)

        assert exc_info.value.detail == "portal login failed"
        assert exc_info.value.status_code == 500

    def test_http_error_without_body(self, client):
        with patch.object(client.session, "request", return_value=fake_response(502)):
            with pytest.raises(DispatchFailure) as exc_info:
                client.process(RECORD, "g@g.us", KEY)

        assert "502" in exc_info.value.detail

    def test_timeout_is_a_failure_not_a_retry(self, client):
        with patch.object(client.session, "request", side_effect=requests.exceptions.Timeout()) as req:
            with pytest.raises(DispatchFailure) as exc_info:
                client.process(RECORD, "g@g.us", KEY)

        assert req.call_count == 1
        assert "timeout" in exc_info.value.detail

    def test_connection_error(self, client):
        with patch.object(client.session, "request", side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(DispatchFailure) as exc_info:
                client.process(RECORD, "g@g.us", KEY)

        assert "refused" in exc_info.value.detail
