"""SMTP email sender (generic, works with any SMTP server)."""

import asyncio
import logging
import smtplib
from email.errors import MessageError
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from functools import partial
from typing import Callable, TypeVar

from notifier.channels import EmailMessage
from notifier.channels.addressing import format_email_address
from notifier.errors import (
    AuthError,
    NetworkError,
    RemoteRejectedError,
    SendError,
    SendTimeoutError,
    SerializationError,
)
from notifier.providers.base import ChannelSender, SendReceipt

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Set by build_mime; custom headers may not override or add to them.
_RESERVED_HEADERS = frozenset(
    h.lower() for h in ("From", "To", "Cc", "Bcc", "Subject", "Date", "Message-ID")
)


class SmtpSender(ChannelSender):
    """Send email via a standard SMTP server."""

    @property
    def channel(self) -> str:
        return "email"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool,
        from_email: str,
        from_name: str = "",
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email
        self.from_name = from_name

    @classmethod
    def from_settings(cls, settings) -> "SmtpSender":
        return cls(
            host=settings.email_smtp_host,
            port=settings.email_smtp_port,
            username=settings.email_smtp_user,
            password=settings.email_smtp_password,
            use_tls=settings.email_smtp_use_tls,
            from_email=settings.email_sender,
            from_name=settings.email_from_name,
        )

    def build_mime(self, message: EmailMessage) -> MIMEText:
        msg = MIMEText(message.body, "plain", "utf-8")
        msg["From"] = format_email_address(self.from_email, self.from_name)
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg["Date"] = formatdate(localtime=False)
        msg["Message-ID"] = make_msgid(idstring="notif", domain=self._sender_domain())
        for key, value in message.headers.items():
            if key.lower() in _RESERVED_HEADERS:
                logger.warning("Ignoring reserved custom header %s", key)
                continue
            msg[key] = value
        return msg

    def _sender_domain(self) -> str:
        _, _, domain = self.from_email.rpartition("@")
        return domain or "localhost"

    def _connect(self, timeout: float) -> smtplib.SMTP:
        server = smtplib.SMTP(self.host, self.port, timeout=timeout)
        try:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
        except BaseException:
            server.close()
            raise
        return server

    def _send_sync(self, msg: MIMEText, recipient: str, timeout: float) -> None:
        """Synchronous SMTP send. The envelope holds only *recipient*."""
        with self._connect(timeout) as server:
            server.send_message(msg, to_addrs=[recipient])

    def _test_connection_sync(self, timeout: float) -> None:
        with self._connect(timeout):
            pass

    async def send(self, message, *, timeout: float) -> SendReceipt:
        if not isinstance(message, EmailMessage):
            raise SerializationError(f"cannot send {type(message).__name__} over SMTP")

        try:
            msg = self.build_mime(message)
        except (ValueError, TypeError, MessageError) as exc:
            raise SerializationError(f"failed to build email message: {exc}") from exc

        await self._run_with_deadline(partial(self._send_sync, msg, message.to, timeout), timeout)

        logger.info("Email sent via SMTP to=%s subject=%s", message.to, message.subject)
        return SendReceipt(message_id=msg["Message-ID"], channel=self.channel, recipient=message.to)

    async def test_connection(self, *, timeout: float) -> None:
        """Connect and authenticate without sending anything."""
        await self._run_with_deadline(partial(self._test_connection_sync, timeout), timeout)

    async def _run_with_deadline(self, func: Callable[[], T], timeout: float) -> T:
        """
        Run a blocking SMTP call in the default executor and wait for whichever
        comes first: its completion or the deadline.

        Losing the race only abandons the wait. The worker thread keeps running
        and its eventual outcome is logged at debug level and otherwise dropped.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, func)

        done, _ = await asyncio.wait({future}, timeout=timeout)
        if not done:
            future.add_done_callback(_log_abandoned)
            raise SendTimeoutError(f"SMTP operation exceeded {timeout}s deadline")

        try:
            return future.result()
        except smtplib.SMTPAuthenticationError as exc:
            raise AuthError(f"SMTP authentication failed: {exc.smtp_code} {_smtp_text(exc)}") from exc
        except smtplib.SMTPConnectError as exc:
            raise NetworkError(f"failed to connect to SMTP server: {_smtp_text(exc)}") from exc
        except smtplib.SMTPRecipientsRefused as exc:
            code, text = next(iter(exc.recipients.values()), (None, b""))
            raise RemoteRejectedError(code, f"recipient refused: {_decode(text)}") from exc
        except smtplib.SMTPResponseException as exc:
            raise RemoteRejectedError(exc.smtp_code, _smtp_text(exc)) from exc
        except smtplib.SMTPServerDisconnected as exc:
            raise NetworkError(f"SMTP server disconnected: {exc}") from exc
        except smtplib.SMTPException as exc:
            raise SendError(f"SMTP server error: {exc}") from exc
        except MessageError as exc:
            raise SerializationError(f"failed to serialize email message: {exc}") from exc
        except TimeoutError as exc:
            raise SendTimeoutError(f"SMTP server timed out: {exc}") from exc
        except OSError as exc:
            raise NetworkError(f"failed to connect to SMTP server: {exc}") from exc


def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _smtp_text(exc: smtplib.SMTPResponseException) -> str:
    return _decode(exc.smtp_error)


def _log_abandoned(future: "asyncio.Future") -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.debug("Abandoned SMTP operation failed after deadline: %s", exc)
    else:
        logger.debug("Abandoned SMTP operation completed after deadline")
