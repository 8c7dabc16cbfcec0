"""Error taxonomy for the notification pipeline."""

from typing import Optional


class NotificationError(Exception):
    """Base class for every failure the pipeline turns into a FAILURE ack."""


class ConfigError(Exception):
    """Raised when mandatory settings are missing at startup."""


# --- Data faults (never retried) ---


class ValidationError(NotificationError):
    pass


class InvalidNotificationID(ValidationError):
    def __init__(self, message: str = "invalid notification ID"):
        super().__init__(message)


class InvalidRecipient(ValidationError):
    def __init__(self, message: str = "invalid recipient"):
        super().__init__(message)


class MissingContent(ValidationError):
    def __init__(self, message: str = "missing message content"):
        super().__init__(message)


class InvalidTemplate(ValidationError):
    def __init__(self, message: str = "invalid template"):
        super().__init__(message)


class ComposeError(NotificationError):
    pass


# --- Delivery faults ---


class SendError(NotificationError):
    # Network and timeout failures may succeed on a later attempt; nothing
    # in this package retries them.
    transient = False


class NetworkError(SendError):
    transient = True


class AuthError(SendError):
    pass


class RemoteRejectedError(SendError):
    def __init__(self, code: Optional[int], message: str):
        self.code = code
        self.message = message
        if code is None:
            super().__init__(f"remote rejected message: {message}")
        else:
            super().__init__(f"remote rejected message: {message} (code: {code})")


class SendTimeoutError(SendError):
    transient = True


class SerializationError(SendError):
    pass


# --- Acknowledgment faults ---


class EmitError(Exception):
    """Publishing an acknowledgment failed. Best-effort: logged, never retried."""


class PipelineError(NotificationError):
    """A pipeline stage failed; ``str()`` is the acknowledgment details text."""

    def __init__(self, stage: str, cause: NotificationError):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")
