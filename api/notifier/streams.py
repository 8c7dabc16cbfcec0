"""
Queue transport on Redis Streams.

Inbound requests are read through a consumer group, so several service
instances sharing one group split the stream between them. An entry stays in
the group's pending list until it is committed (XACK); entries left pending by
a crashed consumer are reclaimed after ``claim_idle_ms``, which is what makes
delivery at-least-once.

Entry layout, both directions: ``{"key": <notification id>, "value": <JSON>}``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

from redis.asyncio import Redis
from redis.exceptions import ResponseError

logger = logging.getLogger(__name__)

_KEY_FIELD = b"key"
_VALUE_FIELD = b"value"


@dataclass(frozen=True)
class InboundMessage:
    entry_id: str
    value: bytes
    key: Optional[str] = None


class InboundQueue(ABC):
    @abstractmethod
    async def ensure_ready(self) -> None:
        """Prepare the subscription. Failures here are fatal for the consumer."""

    @abstractmethod
    async def fetch(self) -> Optional[InboundMessage]:
        """Wait a bounded time for the next message; None if nothing arrived."""

    @abstractmethod
    async def commit(self, message: InboundMessage) -> None:
        """Mark *message* consumed so it is never redelivered to the group."""


class OutboundPublisher(ABC):
    @abstractmethod
    async def publish(self, key: str, value: str) -> None:
        """Append one keyed record to the outbound stream."""


def _as_str(value: Union[bytes, str]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _field(fields: dict, name: bytes) -> Any:
    if name in fields:
        return fields[name]
    return fields.get(name.decode())


class RedisStreamConsumer(InboundQueue):
    def __init__(
        self,
        redis: Redis,
        stream: str,
        group: str,
        consumer: str,
        block_ms: int = 1000,
        claim_idle_ms: int = 60_000,
    ):
        self.redis = redis
        self.stream = stream
        self.group = group
        self.consumer = consumer
        self.block_ms = block_ms
        self.claim_idle_ms = claim_idle_ms
        self._claim_cursor = "0-0"

    async def ensure_ready(self) -> None:
        try:
            await self.redis.xgroup_create(self.stream, self.group, id="0", mkstream=True)
            logger.info("Created consumer group %s on stream %s", self.group, self.stream)
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise

    async def fetch(self) -> Optional[InboundMessage]:
        if self.claim_idle_ms > 0:
            claimed = await self._claim_stale()
            if claimed is not None:
                return claimed

        response = await self.redis.xreadgroup(
            self.group,
            self.consumer,
            streams={self.stream: ">"},
            count=1,
            block=self.block_ms,
        )
        for _stream, entries in response or []:
            for entry_id, fields in entries:
                return self._to_message(entry_id, fields)
        return None

    async def _claim_stale(self) -> Optional[InboundMessage]:
        result = await self.redis.xautoclaim(
            self.stream,
            self.group,
            self.consumer,
            self.claim_idle_ms,
            start_id=self._claim_cursor,
            count=1,
        )
        next_cursor, entries = result[0], result[1]
        self._claim_cursor = _as_str(next_cursor)

        for entry_id, fields in entries:
            if fields is None:
                # trimmed from the stream while pending; nothing to process
                await self.redis.xack(self.stream, self.group, entry_id)
                continue
            logger.warning("Reclaimed stale entry %s from %s", _as_str(entry_id), self.stream)
            return self._to_message(entry_id, fields)
        return None

    def _to_message(self, entry_id, fields: dict) -> InboundMessage:
        value = _field(fields, _VALUE_FIELD) or b""
        if isinstance(value, str):
            value = value.encode()
        key = _field(fields, _KEY_FIELD)
        return InboundMessage(
            entry_id=_as_str(entry_id),
            value=value,
            key=_as_str(key) if key is not None else None,
        )

    async def commit(self, message: InboundMessage) -> None:
        await self.redis.xack(self.stream, self.group, message.entry_id)


class RedisStreamPublisher(OutboundPublisher):
    def __init__(self, redis: Redis, stream: str, maxlen: Optional[int] = 100_000):
        self.redis = redis
        self.stream = stream
        self.maxlen = maxlen

    async def publish(self, key: str, value: str) -> None:
        # A stream is a single ordered log, so records sharing a key keep
        # their relative order.
        await self.redis.xadd(
            self.stream,
            {"key": key, "value": value},
            maxlen=self.maxlen,
            approximate=True,
        )
