"""Build the sender for the configured channel."""

from typing import Optional

import httpx

from notifier.config import Settings
from notifier.providers.base import ChannelSender
from notifier.providers.sms import ConsoleSmsSender
from notifier.providers.smtp import SmtpSender
from notifier.providers.whatsapp import WhatsAppCloudSender
from notifier.schemas import Channel


def build_sender(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
) -> ChannelSender:
    """
    Instantiate the sender for ``settings.channel``.

    *http_client* is only used by HTTP-based senders; when omitted they
    create and own their own client.
    """
    if settings.channel == Channel.WHATSAPP:
        return WhatsAppCloudSender.from_settings(settings, client=http_client)
    elif settings.channel == Channel.EMAIL:
        return SmtpSender.from_settings(settings)
    elif settings.channel == Channel.SMS:
        return ConsoleSmsSender.from_settings(settings)
    else:
        raise ValueError(f"Unknown channel: {settings.channel}")
