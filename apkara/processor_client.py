"""HTTP client for the external processor that executes a record."""
from typing import Any, Dict, Optional
import requests

from apkara import settings
from apkara.errors import DispatchFailure
from apkara.logging_conf import logger
from apkara.record import StructuredRecord


class ProcessorClient:
    """Posts one record at a time to the processor and returns its response body."""

    def __init__(self, url: str = None, timeout: int = None, session: requests.Session = None):
        self.url = url or settings.PROCESSOR_URL
        self.timeout = timeout if timeout is not None else settings.PROCESSOR_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json"
        })

    def build_payload(self, record: StructuredRecord, chat_id: str, message_key: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        payload = record.to_dict()
        payload["chat_id"] = chat_id
        payload["message_key"] = message_key
        return payload

    def process(self, record: StructuredRecord, chat_id: str, message_key: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a record to the processor.

        Args:
            record: Validated, uppercased record
            chat_id: Chat the reply should go to
            message_key: Key of the command message, round-tripped for threading

        Returns:
            Response body with status "success"

        Raises:
            DispatchFailure on timeout, network error, HTTP error or an error body.
            No retry is attempted.
        """
        payload = self.build_payload(record, chat_id, message_key)
        logger.info(f"Sending record to processor: SO {record.so_no} / {record.vehicle_num}")

        try:
            response = self.session.request(method="POST", url=self.url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Processor timed out after {self.timeout}s")
            raise DispatchFailure(f"timeout of {self.timeout * 1000}ms exceeded")
        except requests.exceptions.RequestException as e:
            logger.error(f"Processor request failed: {e}")
            raise DispatchFailure(str(e))

        body = self._json(response)

        if response.status_code >= 400:
            detail = self.error_detail(body) or f"Request failed with status code {response.status_code}"
            logger.error(f"Processor returned {response.status_code}: {detail}")
            raise DispatchFailure(detail, status_code=response.status_code)

        if body.get("status") == "error":
            detail = self.error_detail(body) or "Processor reported an error"
            logger.error(f"Processor reported error: {detail}")
            raise DispatchFailure(detail, status_code=response.status_code)

        logger.info(f"Processor response: {body}")
        return body

    @staticmethod
    def error_detail(body: Dict[str, Any]) -> Optional[str]:
        """Best human-readable error from a processor body."""
        if body.get("status") == "error" and body.get("message"):
            return str(body["message"])
        if body.get("error"):
            return str(body["error"])
        return None

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
