from notifier.schemas.notification import (
    AckStatus,
    AcknowledgmentRecord,
    Channel,
    MediaType,
    NotificationRequest,
    Priority,
)

__all__ = [
    "AckStatus",
    "AcknowledgmentRecord",
    "Channel",
    "MediaType",
    "NotificationRequest",
    "Priority",
]
