"""Base channel sender interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from notifier.channels import ChannelMessage


@dataclass(frozen=True)
class SendReceipt:
    message_id: str
    channel: str
    recipient: str


class ChannelSender(ABC):
    """
    Common interface for all delivery channels.

    Each sender performs exactly one delivery attempt per call and raises a
    SendError subclass on failure. Retries, if any, belong to the caller.
    """

    @property
    @abstractmethod
    def channel(self) -> str:
        ...

    @abstractmethod
    async def send(self, message: ChannelMessage, *, timeout: float) -> SendReceipt:
        """Deliver *message*, giving up after *timeout* seconds."""
        ...

    async def aclose(self) -> None:
        """Release any resources held by the sender."""
