"""WhatsApp Business Cloud API sender."""

import logging
import secrets
from typing import Optional

import httpx

from notifier.channels import MediaMessage, TemplateMessage, TextMessage
from notifier.errors import (
    AuthError,
    NetworkError,
    RemoteRejectedError,
    SendTimeoutError,
    SerializationError,
)
from notifier.providers.base import ChannelSender, SendReceipt

logger = logging.getLogger(__name__)


class WhatsAppCloudSender(ChannelSender):
    """Send chat messages via the Graph API ``/{version}/{phone_number_id}/messages`` endpoint."""

    @property
    def channel(self) -> str:
        return "whatsapp"

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v18.0",
        base_url: str = "https://graph.facebook.com",
        webhook_verify_token: str = "",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self.base_url = base_url.rstrip("/")
        self.webhook_verify_token = webhook_verify_token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "WhatsAppCloudSender":
        return cls(
            access_token=settings.whatsapp_access_token,
            phone_number_id=settings.whatsapp_phone_number_id,
            api_version=settings.whatsapp_api_version,
            base_url=settings.whatsapp_base_url,
            webhook_verify_token=settings.whatsapp_webhook_verify_token,
            client=client,
        )

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self.api_version}/{self.phone_number_id}/messages"

    async def send(self, message, *, timeout: float) -> SendReceipt:
        if not isinstance(message, (TextMessage, MediaMessage, TemplateMessage)):
            raise SerializationError(f"cannot send {type(message).__name__} over WhatsApp")

        try:
            resp = await self._client.post(
                self.messages_url,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
                json=message.to_api_payload(),
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise SendTimeoutError(f"WhatsApp API request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"WhatsApp API unreachable: {exc}") from exc

        if resp.status_code != 200:
            raise self._api_error(resp)

        try:
            data = resp.json()
            message_id = data["messages"][0]["id"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise SerializationError(f"unexpected WhatsApp API response: {resp.text[:200]}") from exc

        logger.info("WhatsApp message sent: id=%s to=%s", message_id, message.to)
        return SendReceipt(message_id=message_id, channel=self.channel, recipient=message.to)

    def _api_error(self, resp: httpx.Response) -> Exception:
        code: Optional[int] = resp.status_code
        text = resp.text[:200]
        try:
            detail = resp.json()["error"]
            code = detail.get("code", code)
            text = f"{detail.get('message', '')} (type: {detail.get('type', '')})"
        except (ValueError, KeyError, TypeError, AttributeError):
            pass

        if resp.status_code in (401, 403):
            return AuthError(f"WhatsApp API rejected credentials: HTTP {resp.status_code} - {text}")
        return RemoteRejectedError(code, text)

    def verify_webhook(self, verify_token: str, challenge: str) -> Optional[str]:
        """Return the challenge to echo back if *verify_token* matches, else None."""
        if not self.webhook_verify_token:
            return None
        if secrets.compare_digest(verify_token.encode(), self.webhook_verify_token.encode()):
            return challenge
        return None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
