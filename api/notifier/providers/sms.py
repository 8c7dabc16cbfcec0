"""SMS gateway stub: logs the message instead of calling a provider."""

import asyncio
import logging
from uuid import uuid4

from notifier.channels import SmsMessage
from notifier.errors import SendTimeoutError, SerializationError
from notifier.providers.base import ChannelSender, SendReceipt

logger = logging.getLogger(__name__)


class ConsoleSmsSender(ChannelSender):
    """
    Simulated SMS delivery.

    No gateway is integrated yet; every message is logged and reported as
    delivered after a short simulated delay.
    """

    @property
    def channel(self) -> str:
        return "sms"

    def __init__(self, simulated_delay: float = 0.1):
        self.simulated_delay = simulated_delay

    @classmethod
    def from_settings(cls, settings) -> "ConsoleSmsSender":
        return cls(simulated_delay=settings.sms_simulated_delay_seconds)

    async def send(self, message, *, timeout: float) -> SendReceipt:
        if not isinstance(message, SmsMessage):
            raise SerializationError(f"cannot send {type(message).__name__} as SMS")

        if self.simulated_delay > timeout:
            await asyncio.sleep(timeout)
            raise SendTimeoutError(f"SMS gateway exceeded {timeout}s deadline")
        await asyncio.sleep(self.simulated_delay)

        message_id = f"sms-{uuid4().hex[:12]}"
        logger.info("SMS sent (simulated): id=%s to=%s body=%r", message_id, message.to, message.body)
        return SendReceipt(message_id=message_id, channel=self.channel, recipient=message.to)
