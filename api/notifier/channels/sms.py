"""SMS message builder."""

from notifier.channels import SmsMessage
from notifier.channels.addressing import clean_phone_number
from notifier.channels.template import render
from notifier.errors import MissingContent
from notifier.schemas import NotificationRequest


def build_sms_message(request: NotificationRequest) -> SmsMessage:
    to = clean_phone_number(request.to)
    body = render(request.template_body, request.params)
    if not body:
        raise MissingContent("missing SMS content")
    return SmsMessage(to=to, body=body)
