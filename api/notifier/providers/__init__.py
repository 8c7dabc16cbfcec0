"""Channel sender abstraction layer."""

from notifier.providers.base import ChannelSender, SendReceipt
from notifier.providers.sms import ConsoleSmsSender
from notifier.providers.smtp import SmtpSender
from notifier.providers.whatsapp import WhatsAppCloudSender
from notifier.providers.resolver import build_sender

__all__ = [
    "ChannelSender",
    "ConsoleSmsSender",
    "SendReceipt",
    "SmtpSender",
    "WhatsAppCloudSender",
    "build_sender",
]
