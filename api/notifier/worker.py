"""Background consumer: inbound stream to channel sender to ack stream."""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pydantic

from notifier.acks import AckEmitter
from notifier.errors import EmitError, PipelineError
from notifier.pipeline import NotificationPipeline
from notifier.schemas import AckStatus, Channel, NotificationRequest
from notifier.streams import InboundMessage, InboundQueue

logger = logging.getLogger(__name__)

INVALID_PAYLOAD_DETAILS = "Invalid JSON payload"

_SUCCESS_DETAILS = {
    Channel.WHATSAPP: "WhatsApp message sent successfully",
    Channel.EMAIL: "Email sent successfully",
    Channel.SMS: "SMS sent successfully",
}

_ID_PATTERN = re.compile(r'"notificationId"\s*:\s*"((?:[^"\\]|\\.)*)"')


class LoopState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PROCESSING = "processing"
    COMMITTING = "committing"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ProcessingOutcome:
    notification_id: str
    status: AckStatus
    details: str
    ack_error: Optional[EmitError] = None

    @property
    def ack_emitted(self) -> bool:
        return self.ack_error is None


def decode_request(raw: bytes) -> NotificationRequest:
    """Parse one queue entry. Raises pydantic.ValidationError on bad JSON or shape."""
    return NotificationRequest.model_validate_json(raw)


def extract_notification_id(raw: bytes) -> str:
    """Best-effort id recovery from a payload that failed to decode."""
    text = raw.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except ValueError:
        data = None
    if isinstance(data, dict):
        value = data.get("notificationId")
        return value if isinstance(value, str) else ""

    match = _ID_PATTERN.search(text)
    if not match:
        return ""
    try:
        return json.loads(f'"{match.group(1)}"')
    except ValueError:
        return match.group(1)


class ConsumerLoop:
    """
    Sequential consumer: one message is fetched, processed, acknowledged and
    committed before the next fetch.

    Delivery is at-least-once. A crash after the send but before the commit
    means the entry is redelivered, sent again, and acknowledged again.
    """

    def __init__(
        self,
        queue: InboundQueue,
        pipeline: NotificationPipeline,
        emitter: AckEmitter,
    ):
        self.queue = queue
        self.pipeline = pipeline
        self.emitter = emitter
        self.state = LoopState.IDLE
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Request shutdown; the message in flight, if any, is finished first."""
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> None:
        await self.queue.ensure_ready()
        logger.info("Consumer started for %s channel", self.pipeline.channel.value)

        try:
            while not self._stop.is_set():
                self.state = LoopState.FETCHING
                message = await self.queue.fetch()
                if message is None:
                    self.state = LoopState.IDLE
                    continue
                await self.handle(message)
        finally:
            self.state = LoopState.STOPPED
            logger.info("Consumer stopped")

    async def handle(self, message: InboundMessage) -> ProcessingOutcome:
        self.state = LoopState.PROCESSING
        outcome = await self.process(message)

        if outcome.status == AckStatus.FAILURE and not outcome.ack_emitted:
            logger.error(
                "Error processing message %s: delivery failed and the failure ack was not published: %s",
                message.entry_id,
                outcome.ack_error,
            )

        # Commit regardless of the ack outcome: a terminal result was reached.
        self.state = LoopState.COMMITTING
        try:
            await self.queue.commit(message)
        except Exception:
            logger.exception("Error committing message %s", message.entry_id)

        self.state = LoopState.IDLE
        return outcome

    async def process(self, message: InboundMessage) -> ProcessingOutcome:
        try:
            request = decode_request(message.value)
        except pydantic.ValidationError as exc:
            notification_id = extract_notification_id(message.value) or (message.key or "")
            logger.warning("Invalid payload in entry %s: %s", message.entry_id, exc.errors()[:1])
            return await self._acknowledge(notification_id, AckStatus.FAILURE, INVALID_PAYLOAD_DETAILS)

        notification_id = request.notification_id
        logger.info("Processing %s notification: %s for %s", self.pipeline.channel.value, notification_id, request.to)

        try:
            await self.pipeline.dispatch(request)
        except PipelineError as exc:
            logger.error("Failed to process notification %s: %s", notification_id, exc)
            return await self._acknowledge(notification_id, AckStatus.FAILURE, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error processing notification %s", notification_id)
            return await self._acknowledge(notification_id, AckStatus.FAILURE, f"internal error: {exc}")

        return await self._acknowledge(
            notification_id,
            AckStatus.SUCCESS,
            _SUCCESS_DETAILS[self.pipeline.channel],
        )

    async def _acknowledge(self, notification_id: str, status: AckStatus, details: str) -> ProcessingOutcome:
        try:
            await self.emitter.emit(notification_id, status, details)
        except EmitError as exc:
            if status == AckStatus.SUCCESS:
                logger.warning("Ack for delivered notification %s was not published: %s", notification_id, exc)
            return ProcessingOutcome(notification_id, status, details, ack_error=exc)
        return ProcessingOutcome(notification_id, status, details)
