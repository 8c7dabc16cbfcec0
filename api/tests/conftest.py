import json
from typing import Optional
from uuid import uuid4

import pytest

from notifier.config import Settings
from notifier.errors import SendError
from notifier.providers.base import ChannelSender, SendReceipt
from notifier.schemas import NotificationRequest
from notifier.streams import InboundMessage, InboundQueue, OutboundPublisher


class FakeQueue(InboundQueue):
    """In-memory inbound queue that records commits for test assertions."""

    def __init__(self, messages: Optional[list] = None):
        self.pending: list[InboundMessage] = list(messages or [])
        self.committed: list[str] = []
        self.events: list[str] = []
        self.ready = False
        self.on_empty = None
        self.commit_error: Optional[Exception] = None

    def put(self, message: InboundMessage) -> None:
        self.pending.append(message)

    async def ensure_ready(self) -> None:
        self.ready = True

    async def fetch(self) -> Optional[InboundMessage]:
        if not self.pending:
            if self.on_empty is not None:
                self.on_empty()
            return None
        return self.pending.pop(0)

    async def commit(self, message: InboundMessage) -> None:
        self.events.append(f"commit:{message.entry_id}")
        if self.commit_error is not None:
            raise self.commit_error
        self.committed.append(message.entry_id)


class FakePublisher(OutboundPublisher):
    """Records published acknowledgments; can be told to fail."""

    def __init__(self, events: Optional[list] = None):
        self.records: list[tuple[str, dict]] = []
        self.events = events if events is not None else []
        self.error: Optional[Exception] = None

    async def publish(self, key: str, value: str) -> None:
        self.events.append(f"ack:{key}")
        if self.error is not None:
            raise self.error
        self.records.append((key, json.loads(value)))

    @property
    def acks(self) -> list[dict]:
        return [value for _, value in self.records]


class FakeSender(ChannelSender):
    """Sender that records messages; set ``error`` to make every send fail."""

    def __init__(self, channel: str = "whatsapp"):
        self._channel = channel
        self.sent: list = []
        self.error: Optional[SendError] = None
        self.timeouts: list[float] = []

    @property
    def channel(self) -> str:
        return self._channel

    async def send(self, message, *, timeout: float) -> SendReceipt:
        self.timeouts.append(timeout)
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return SendReceipt(
            message_id=f"{self._channel}-{uuid4().hex[:12]}",
            channel=self._channel,
            recipient=message.to,
        )


def make_request(**overrides) -> NotificationRequest:
    data = {
        "notificationId": "notif-1",
        "messageType": "ALERT",
        "to": "+1234567890",
        "templateBody": "Hello {name}!",
        "params": {"name": "World"},
        "priority": "high",
        "locale": "en_US",
    }
    data.update(overrides)
    return NotificationRequest.model_validate(data)


def make_entry(payload, entry_id: str = "1-0", key: Optional[str] = None) -> InboundMessage:
    if isinstance(payload, dict):
        raw = json.dumps(payload).encode()
    elif isinstance(payload, str):
        raw = payload.encode()
    else:
        raw = payload
    return InboundMessage(entry_id=entry_id, value=raw, key=key)


@pytest.fixture
def whatsapp_settings():
    return Settings(
        channel="whatsapp",
        whatsapp_access_token="test-token",
        whatsapp_phone_number_id="1234567",
        whatsapp_webhook_verify_token="verify-me",
        consumer_name="test-consumer",
    )


@pytest.fixture
def email_settings():
    return Settings(
        channel="email",
        email_smtp_host="smtp.example.com",
        email_smtp_user="mailer",
        email_smtp_password="secret",
        email_sender="noreply@example.com",
        consumer_name="test-consumer",
    )


@pytest.fixture
def sms_settings():
    return Settings(channel="sms", sms_simulated_delay_seconds=0, consumer_name="test-consumer")
