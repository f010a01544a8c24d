"""WhatsApp transport: outbound gateway client and inbound payload normalization.

The WhatsApp session itself (pairing, reconnects, auth) lives in an
Evolution-API style gateway. This module only sends messages through it,
asks it for group names, and turns its webhook events into InboundMessage.
"""
import base64
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import requests

from apkara import settings
from apkara.errors import NotificationFailure, TransportUnavailable
from apkara.logging_conf import logger

GROUP_SUFFIX = "@g.us"


@dataclass
class InboundMessage:
    """A chat message as delivered by the gateway webhook."""

    chat_id: str
    message_id: str
    from_me: bool = False
    participant: Optional[str] = None
    push_name: Optional[str] = None
    text: str = ""
    quoted_text: Optional[str] = None
    has_quoted: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_group(self) -> bool:
        return self.chat_id.endswith(GROUP_SUFFIX)

    @property
    def key(self) -> Dict[str, Any]:
        return self.raw.get("key", {})


def _message_text(message: Optional[Dict[str, Any]]) -> str:
    """Plain text of a message body, or empty string."""
    if not message:
        return ""
    if message.get("conversation"):
        return message["conversation"]
    extended = message.get("extendedTextMessage") or {}
    return extended.get("text") or ""


def normalize_event(payload: Dict[str, Any]) -> Optional[InboundMessage]:
    """Turn a `messages.upsert` webhook payload into an InboundMessage.

    Returns None for other events and for messages without a body.
    """
    event = payload.get("event")
    if event and event.replace("_", ".").lower() != "messages.upsert":
        return None

    data = payload.get("data") or {}
    if isinstance(data, list):
        data = data[0] if data else {}

    key = data.get("key") or {}
    message = data.get("message")
    chat_id = key.get("remoteJid")
    if not message or not chat_id:
        return None

    context_info = (message.get("extendedTextMessage") or {}).get("contextInfo") or {}
    quoted = context_info.get("quotedMessage")

    return InboundMessage(
        chat_id=chat_id,
        message_id=key.get("id", ""),
        from_me=bool(key.get("fromMe")),
        participant=key.get("participant"),
        push_name=data.get("pushName"),
        text=_message_text(message),
        quoted_text=_message_text(quoted) if quoted else None,
        has_quoted=quoted is not None,
        raw={"key": key, "message": message},
    )


class GatewayClient:
    """Sends messages through the WhatsApp gateway."""

    def __init__(self, base_url: str = None, instance: str = None, api_key: str = None, timeout: int = None):
        self.base_url = (base_url or settings.GATEWAY_BASE_URL or "").rstrip("/")
        self.instance = instance or settings.GATEWAY_INSTANCE
        self.timeout = timeout if timeout is not None else settings.GATEWAY_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": api_key or settings.GATEWAY_API_KEY or "",
            "Content-Type": "application/json",
            "Accept": "application/json"
        })

    @property
    def available(self) -> bool:
        return bool(self.base_url and self.instance)

    def send_text(self, chat_id: str, text: str, quoted: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a text message, optionally as a reply to `quoted`."""
        payload = {"number": chat_id, "text": text}
        if quoted:
            payload["quoted"] = quoted
        return self._request("POST", f"/message/sendText/{self.instance}", json=payload)

    def send_image(self, chat_id: str, image: str, caption: str = "", quoted: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send an image given as URL or base64 string."""
        payload = {
            "number": chat_id,
            "mediatype": "image",
            "mimetype": "image/png",
            "media": image,
            "caption": caption,
        }
        if quoted:
            payload["quoted"] = quoted
        return self._request("POST", f"/message/sendMedia/{self.instance}", json=payload)

    def send_image_file(self, chat_id: str, path: Path, caption: str = "", quoted: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a local image file."""
        encoded = base64.b64encode(Path(path).read_bytes()).decode("ascii")
        return self.send_image(chat_id, encoded, caption=caption, quoted=quoted)

    def group_subject(self, chat_id: str) -> Optional[str]:
        """Group name for a group jid."""
        body = self._request("GET", f"/group/findGroupInfos/{self.instance}", params={"groupJid": chat_id})
        return body.get("subject")

    def _request(self, method: str, endpoint: str, retry_count: int = 0, **kwargs) -> Dict[str, Any]:
        """Make a gateway request. Retries 5xx/connection errors twice."""
        if not self.available:
            raise TransportUnavailable("WhatsApp gateway not configured")

        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)

            if response.status_code >= 500 and retry_count < 2:
                wait_time = 2 ** retry_count
                logger.warning(f"Gateway error {response.status_code}. Retrying in {wait_time}s...")
                time.sleep(wait_time)
                return self._request(method, endpoint, retry_count + 1, **kwargs)

            response.raise_for_status()
            try:
                body = response.json()
            except ValueError:
                return {}
            return body if isinstance(body, dict) else {"data": body}

        except requests.exceptions.RequestException as e:
            if retry_count < 2 and isinstance(e, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
                time.sleep(2 ** retry_count)
                return self._request(method, endpoint, retry_count + 1, **kwargs)
            logger.error(f"Gateway request failed: {e}")
            raise NotificationFailure(str(e)) from e
