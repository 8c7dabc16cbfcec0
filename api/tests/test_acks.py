import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from notifier.acks import AckEmitter
from notifier.errors import EmitError
from notifier.schemas import AckStatus

from conftest import FakePublisher


class HangingPublisher(FakePublisher):
    async def publish(self, key, value):
        await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_emit_publishes_keyed_record():
    publisher = FakePublisher()
    emitter = AckEmitter(publisher)

    before = datetime.now(timezone.utc)
    record = await emitter.emit("n-1", AckStatus.SUCCESS, "SMS sent successfully")

    key, value = publisher.records[0]
    assert key == "n-1"
    assert value["notificationId"] == "n-1"
    assert value["status"] == "SUCCESS"
    assert value["details"] == "SMS sent successfully"
    assert record.timestamp.tzinfo is not None
    assert before - timedelta(seconds=1) <= record.timestamp <= datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_emit_failure_raises_emit_error():
    publisher = FakePublisher()
    publisher.error = ConnectionError("redis down")

    with pytest.raises(EmitError, match="redis down"):
        await AckEmitter(publisher).emit("n-1", AckStatus.FAILURE, "boom")


@pytest.mark.asyncio
async def test_emit_timeout_raises_emit_error():
    emitter = AckEmitter(HangingPublisher(), timeout=0.05)

    with pytest.raises(EmitError, match="timed out"):
        await emitter.emit("n-1", AckStatus.SUCCESS, "ok")
