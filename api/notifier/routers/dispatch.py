import logging

import pydantic
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from notifier.errors import PipelineError, SendError
from notifier.pipeline import NotificationPipeline
from notifier.providers.smtp import SmtpSender
from notifier.worker import decode_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dispatch"])
connection_router = APIRouter(tags=["dispatch"])


def get_pipeline(request: Request) -> NotificationPipeline:
    return request.app.state.pipeline


# ---------------------------------------------------------------------------
# Synchronous dispatch (bypasses the queue; no acknowledgment is published)
# ---------------------------------------------------------------------------


@router.post("/send-test", summary="Send one notification directly")
async def send_test(request: Request, pipeline: NotificationPipeline = Depends(get_pipeline)):
    raw = await request.body()
    try:
        payload = decode_request(raw)
    except pydantic.ValidationError:
        logger.info("Rejected /send-test: invalid JSON payload")
        raise HTTPException(status_code=400, detail="Invalid JSON")

    try:
        receipt = await pipeline.dispatch(payload)
    except PipelineError as exc:
        logger.warning("Failed to send test message %s: %s", payload.notification_id, exc)
        raise HTTPException(status_code=500, detail=f"Failed to send message: {exc}")

    return {
        "status": "sent",
        "notificationId": payload.notification_id,
        "messageId": receipt.message_id,
        "recipient": receipt.recipient,
        "message": "Test message sent successfully",
    }


# ---------------------------------------------------------------------------
# Email readiness probe
# ---------------------------------------------------------------------------


@connection_router.get("/test-connection", summary="Check SMTP connectivity and credentials")
async def test_connection(request: Request, pipeline: NotificationPipeline = Depends(get_pipeline)):
    sender = pipeline.sender
    if not isinstance(sender, SmtpSender):
        raise HTTPException(status_code=404, detail="Connection test is only available for email")

    try:
        await sender.test_connection(timeout=pipeline.send_timeout)
    except SendError as exc:
        logger.warning("SMTP connection test failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "FAIL", "message": "SMTP connection failed", "error": str(exc)},
        )

    return {"status": "SUCCESS", "message": "SMTP connection successful"}
