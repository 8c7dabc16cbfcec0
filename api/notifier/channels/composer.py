"""Turn a validated request into the message shape of the active channel."""

import logging

from notifier.channels import ChannelMessage
from notifier.channels.email import build_email_message
from notifier.channels.sms import build_sms_message
from notifier.channels.template import find_missing_parameters
from notifier.channels.whatsapp import build_whatsapp_message
from notifier.errors import ComposeError
from notifier.schemas import Channel, NotificationRequest

logger = logging.getLogger(__name__)

_BUILDERS = {
    Channel.WHATSAPP: build_whatsapp_message,
    Channel.EMAIL: build_email_message,
    Channel.SMS: build_sms_message,
}


def compose(request: NotificationRequest, channel: Channel) -> ChannelMessage:
    builder = _BUILDERS.get(channel)
    if builder is None:
        raise ComposeError(f"unknown channel: {channel}")

    missing = find_missing_parameters(request.template_body, request.params)
    if missing:
        # Diagnostic only; unmatched placeholders are sent verbatim.
        logger.warning(
            "Notification %s has unresolved template parameters: %s",
            request.notification_id,
            ", ".join(sorted(missing)),
        )

    return builder(request)
