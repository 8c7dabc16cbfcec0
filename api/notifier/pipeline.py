"""Validate -> compose -> send, shared by the consumer loop and /send-test."""

import asyncio
import logging
from typing import Optional

from notifier.channels import ChannelMessage
from notifier.channels.composer import compose
from notifier.channels.validate import validate_request
from notifier.errors import NotificationError, PipelineError, SendTimeoutError
from notifier.providers.base import ChannelSender, SendReceipt
from notifier.schemas import Channel, NotificationRequest

logger = logging.getLogger(__name__)

STAGE_VALIDATE = "invalid notification payload"
STAGE_COMPOSE = "failed to build message"
STAGE_SEND = "failed to send message"

# Slack on the outer bound so a sender reports its own deadline first.
SEND_GRACE_SECONDS = 1.0


class NotificationPipeline:
    """Stateless apart from its collaborators; safe to share across requests."""

    def __init__(self, channel: Channel, sender: ChannelSender, send_timeout: float):
        if send_timeout <= 0:
            raise ValueError("send_timeout must be positive")
        self.channel = channel
        self.sender = sender
        self.send_timeout = send_timeout

    async def dispatch(
        self,
        request: NotificationRequest,
        timeout: Optional[float] = None,
    ) -> SendReceipt:
        """
        Deliver one request.

        Raises PipelineError wrapping the first stage failure. *timeout* may
        only shorten the configured send budget, never extend it.
        """
        budget = self.send_timeout if timeout is None else min(timeout, self.send_timeout)

        stage = STAGE_VALIDATE
        try:
            validate_request(request, self.channel)
            stage = STAGE_COMPOSE
            message = compose(request, self.channel)
            stage = STAGE_SEND
            receipt = await self._send(message, budget)
        except NotificationError as exc:
            raise PipelineError(stage, exc) from exc

        logger.info(
            "Notification %s delivered via %s to %s (message id %s)",
            request.notification_id,
            self.channel.value,
            receipt.recipient,
            receipt.message_id,
        )
        return receipt

    async def _send(self, message: ChannelMessage, budget: float) -> SendReceipt:
        # Senders apply the budget to their own I/O; the outer bound keeps a
        # misbehaving sender from outliving it.
        try:
            return await asyncio.wait_for(
                self.sender.send(message, timeout=budget),
                budget + SEND_GRACE_SECONDS,
            )
        except asyncio.TimeoutError as exc:
            raise SendTimeoutError(f"send exceeded {budget}s budget") from exc
