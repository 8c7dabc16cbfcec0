import logging

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse

from notifier.providers.whatsapp import WhatsAppCloudSender

wh_logger = logging.getLogger("webhooks")

router = APIRouter(tags=["webhooks"])


@router.get("/webhook", summary="Provider webhook verification")
async def verify_webhook(request: Request):
    verify_token = request.query_params.get("hub.verify_token", "")
    challenge = request.query_params.get("hub.challenge", "")
    if not verify_token or not challenge:
        raise HTTPException(status_code=400, detail="Missing verification parameters")

    sender = request.app.state.pipeline.sender
    echoed = None
    if isinstance(sender, WhatsAppCloudSender):
        echoed = sender.verify_webhook(verify_token, challenge)
    if echoed is None:
        wh_logger.warning("Webhook verification failed")
        raise HTTPException(status_code=403, detail="Verification failed")

    return PlainTextResponse(echoed)


@router.post("/webhook", summary="Receive provider callbacks")
async def receive_webhook(request: Request):
    # Status updates and replies are only logged for now.
    body = await request.body()
    wh_logger.info("Received webhook notification: %s", body.decode("utf-8", errors="replace"))
    return Response(status_code=200)
