"""Wire schemas for inbound notification requests and outbound acknowledgments."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class Channel(str, Enum):
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    SMS = "sms"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MediaType(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"


class AckStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    PENDING = "PENDING"


class NotificationRequest(BaseModel):
    """
    One notification request, decoded from a queue entry or a /send-test body.

    Priority and media type stay free-form strings: unknown values are mapped
    to defaults at compose time instead of being rejected here.
    """

    notification_id: str = Field("", alias="notificationId")
    message_type: str = Field("", alias="messageType")
    to: str = Field("", description="Phone number or email address, depending on the channel")
    template_body: str = Field("", alias="templateBody")
    params: dict[str, str] = Field(default_factory=dict)
    channel_config: dict[str, Any] = Field(default_factory=dict, alias="channelConfig")
    fallback_channels: list[dict[str, Any]] = Field(
        default_factory=list,
        alias="fallbackChannels",
        description="Carried for forward compatibility; not acted upon",
    )
    priority: str = ""
    locale: str = ""
    media_url: str = Field("", alias="mediaUrl")
    media_type: str = Field("", alias="mediaType")
    template_name: str = Field("", alias="templateName")

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # JSON null means "not provided" for every field
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class AcknowledgmentRecord(BaseModel):
    notification_id: str = Field(..., alias="notificationId")
    status: AckStatus
    details: str
    timestamp: datetime

    model_config = {"frozen": True, "populate_by_name": True}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
