"""WhatsApp message builder."""

from notifier.channels import ChatMessage, MediaMessage, TemplateMessage, TextMessage
from notifier.channels.addressing import clean_phone_number
from notifier.channels.template import language_code, render
from notifier.errors import InvalidTemplate, MissingContent
from notifier.schemas import MediaType, NotificationRequest

_MEDIA_TYPES = {m.value for m in MediaType}


def build_whatsapp_message(request: NotificationRequest) -> ChatMessage:
    """
    Build the chat message for a request.

    The shape is picked by the first populated field:
        - mediaUrl     -> MediaMessage
        - templateName -> TemplateMessage
        - otherwise    -> TextMessage
    """
    to = clean_phone_number(request.to)

    if request.media_url:
        return build_media_message(to, request)
    if request.template_name:
        return build_template_message(to, request)
    return build_text_message(to, request)


def build_text_message(to: str, request: NotificationRequest) -> TextMessage:
    body = render(request.template_body, request.params)
    if not body:
        raise MissingContent()
    return TextMessage(to=to, body=body)


def build_media_message(to: str, request: NotificationRequest) -> MediaMessage:
    if not request.media_url:
        raise MissingContent("missing media link")

    media_type = request.media_type if request.media_type in _MEDIA_TYPES else MediaType.IMAGE.value

    filename = None
    if media_type == MediaType.DOCUMENT.value:
        filename = request.params.get("filename")

    return MediaMessage(
        to=to,
        media_type=media_type,
        link=request.media_url,
        caption=render(request.template_body, request.params),
        filename=filename,
    )


def build_template_message(to: str, request: NotificationRequest) -> TemplateMessage:
    if not request.template_name:
        raise InvalidTemplate()
    return TemplateMessage(
        to=to,
        name=request.template_name,
        language=language_code(request.locale),
        parameters=list(request.params.values()),
    )
