"""Acknowledgment emitter: one status record per consumed request."""

import asyncio
import logging
from datetime import datetime, timezone

from notifier.errors import EmitError
from notifier.schemas import AckStatus, AcknowledgmentRecord
from notifier.streams import OutboundPublisher

logger = logging.getLogger(__name__)


class AckEmitter:
    def __init__(self, publisher: OutboundPublisher, timeout: float = 10):
        self.publisher = publisher
        self.timeout = timeout

    async def emit(
        self,
        notification_id: str,
        status: AckStatus,
        details: str,
    ) -> AcknowledgmentRecord:
        """
        Publish an acknowledgment keyed by *notification_id*.

        The timestamp is taken at call time. Raises EmitError when the record
        could not be published within the timeout.
        """
        record = AcknowledgmentRecord(
            notification_id=notification_id,
            status=status,
            details=details,
            timestamp=datetime.now(timezone.utc),
        )

        try:
            await asyncio.wait_for(
                self.publisher.publish(notification_id, record.to_json()),
                self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise EmitError(f"ack for {notification_id!r} timed out after {self.timeout}s") from exc
        except Exception as exc:
            raise EmitError(f"failed to publish ack for {notification_id!r}: {exc}") from exc

        logger.debug("Ack published: id=%s status=%s", notification_id, status.value)
        return record
