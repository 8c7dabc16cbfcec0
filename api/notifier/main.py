import asyncio
import logging
import os
import signal
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from notifier import __version__
from notifier.acks import AckEmitter
from notifier.config import Settings
from notifier.middleware import HEALTH_PATH, RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from notifier.pipeline import NotificationPipeline
from notifier.providers import ChannelSender, build_sender
from notifier.routers import dispatch, webhook
from notifier.schemas import Channel
from notifier.streams import (
    InboundQueue,
    OutboundPublisher,
    RedisStreamConsumer,
    RedisStreamPublisher,
)
from notifier.worker import ConsumerLoop

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    sender: Optional[ChannelSender] = None,
    queue: Optional[InboundQueue] = None,
    publisher: Optional[OutboundPublisher] = None,
    start_consumer: bool = True,
    exit_on_consumer_failure: bool = True,
) -> FastAPI:
    """
    Build the service for ``settings.channel``.

    Collaborators that are not passed in are built from settings inside the
    lifespan and closed on shutdown. With ``start_consumer=False`` only the
    HTTP surface runs.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_client = None
        redis = None
        app_sender = sender
        if app_sender is None:
            if settings.channel == Channel.WHATSAPP:
                http_client = httpx.AsyncClient()
            app_sender = build_sender(settings, http_client)

        pipeline = NotificationPipeline(settings.channel, app_sender, settings.send_timeout_seconds)
        app.state.pipeline = pipeline

        consumer = None
        consumer_task = None
        if start_consumer:
            if queue is None or publisher is None:
                redis = Redis.from_url(settings.redis_url)
            inbound = queue or RedisStreamConsumer(
                redis,
                settings.inbound_stream,
                settings.consumer_group,
                settings.consumer_name,
                block_ms=settings.fetch_block_ms,
                claim_idle_ms=settings.claim_idle_ms,
            )
            outbound = publisher or RedisStreamPublisher(
                redis, settings.ack_stream, maxlen=settings.ack_stream_maxlen
            )
            consumer = ConsumerLoop(inbound, pipeline, AckEmitter(outbound, settings.ack_timeout_seconds))
            consumer_task = asyncio.create_task(consumer.run(), name="consumer-loop")
            consumer_task.add_done_callback(
                lambda task: _consumer_exited(task, exit_on_consumer_failure)
            )
        app.state.consumer = consumer

        logger.info("%s started (channel=%s)", settings.service_name, settings.channel.value)
        yield

        if consumer_task is not None:
            consumer.stop()
            done, _ = await asyncio.wait({consumer_task}, timeout=settings.shutdown_timeout_seconds)
            if not done:
                logger.error("Consumer did not stop within %ss; cancelling", settings.shutdown_timeout_seconds)
                consumer_task.cancel()
                await asyncio.gather(consumer_task, return_exceptions=True)

        if sender is None:
            await app_sender.aclose()
        if http_client is not None:
            await http_client.aclose()
        if redis is not None:
            await redis.aclose()
        logger.info("%s stopped", settings.service_name)

    app = FastAPI(
        title=settings.service_name,
        description="Consume notification requests, deliver them, and publish acknowledgments.",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(RequestSizeLimitMiddleware, max_body_size=settings.max_body_bytes)
    app.add_middleware(SecurityHeadersMiddleware)

    # --- Exception Handlers ---

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.status_code, "message": exc.detail}},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": {"code": 500, "message": "Internal server error"}},
        )

    # --- Routes ---

    app.include_router(dispatch.router)
    if settings.channel == Channel.EMAIL:
        app.include_router(dispatch.connection_router)
    if settings.channel == Channel.WHATSAPP:
        app.include_router(webhook.router)

    @app.get("/", summary="API root")
    async def root():
        return {"name": settings.service_name, "status": "ok", "version": __version__}

    @app.get(HEALTH_PATH, summary="Health check")
    async def health():
        return {"status": "UP", "service": settings.service_name}

    return app


def _consumer_exited(task: asyncio.Task, exit_process: bool) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is None:
        return
    logger.critical("Consumer loop terminated", exc_info=exc)
    if exit_process:
        # Let the host environment restart us.
        os.kill(os.getpid(), signal.SIGTERM)
