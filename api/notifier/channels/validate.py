"""Required-field checks for notification requests, per channel."""

from notifier.errors import InvalidNotificationID, InvalidRecipient, MissingContent
from notifier.schemas import Channel, NotificationRequest


def validate_request(request: NotificationRequest, channel: Channel) -> None:
    """
    Check the fields every request needs before composition.

    Fails fast on the first violated rule:
      1. notification id present
      2. recipient present
      3. content present (chat accepts a body OR a template name)
    """
    if not request.notification_id:
        raise InvalidNotificationID()
    if not request.to:
        raise InvalidRecipient()

    if channel == Channel.WHATSAPP:
        if not request.template_body and not request.template_name:
            raise MissingContent()
    elif not request.template_body:
        # email and sms have no named-template mode
        raise MissingContent()
