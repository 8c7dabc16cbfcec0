"""Channel-ready message shapes handed from the composer to a sender."""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class TextMessage:
    """Plain chat text."""
    to: str
    body: str
    preview_url: bool = True

    def to_api_payload(self) -> dict:
        return {
            **_chat_envelope(self.to, "text"),
            "text": {"preview_url": self.preview_url, "body": self.body},
        }


@dataclass
class MediaMessage:
    """Chat image, document, audio or video referenced by link."""
    to: str
    media_type: str
    link: str
    caption: str = ""
    filename: Optional[str] = None

    def to_api_payload(self) -> dict:
        media = {"link": self.link}
        if self.caption:
            media["caption"] = self.caption
        if self.filename:
            media["filename"] = self.filename
        return {**_chat_envelope(self.to, self.media_type), self.media_type: media}


@dataclass
class TemplateMessage:
    """Pre-approved chat template with positional body parameters."""
    to: str
    name: str
    language: str
    parameters: list[str] = field(default_factory=list)

    def to_api_payload(self) -> dict:
        template: dict = {"name": self.name, "language": {"code": self.language}}
        if self.parameters:
            template["components"] = [
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": p} for p in self.parameters],
                }
            ]
        return {**_chat_envelope(self.to, "template"), "template": template}


@dataclass
class EmailMessage:
    to: str
    subject: str
    body: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class SmsMessage:
    to: str
    body: str


ChatMessage = Union[TextMessage, MediaMessage, TemplateMessage]
ChannelMessage = Union[TextMessage, MediaMessage, TemplateMessage, EmailMessage, SmsMessage]


def _chat_envelope(to: str, message_type: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": message_type,
    }
