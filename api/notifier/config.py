import os
import socket

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings

from notifier.errors import ConfigError
from notifier.schemas import Channel

_DEFAULT_PORTS = {
    Channel.EMAIL: 8084,
    Channel.WHATSAPP: 8085,
    Channel.SMS: 8086,
}


class Settings(BaseSettings):
    channel: Channel = Field(
        Channel.WHATSAPP,
        validation_alias=AliasChoices("notifier_channel", "channel"),
    )
    service_name: str = ""
    service_port: int = 0
    log_level: str = "INFO"

    # Redis Streams transport. Empty names default per channel.
    redis_url: str = "redis://localhost:6379"
    inbound_stream: str = ""
    ack_stream: str = ""
    consumer_group: str = ""
    consumer_name: str = ""
    fetch_block_ms: int = 1000
    claim_idle_ms: int = 60_000
    ack_stream_maxlen: int = 100_000

    # Time budgets (seconds)
    send_timeout_seconds: float = 30
    ack_timeout_seconds: float = 10
    shutdown_timeout_seconds: float = 30

    max_body_bytes: int = 1024 * 1024

    # WhatsApp Business Cloud API
    whatsapp_access_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_business_account_id: str = ""
    whatsapp_api_version: str = "v18.0"
    whatsapp_base_url: str = "https://graph.facebook.com"
    whatsapp_webhook_verify_token: str = ""

    # SMTP
    email_smtp_host: str = "smtp.gmail.com"
    email_smtp_port: int = 587
    email_smtp_user: str = ""
    email_smtp_password: str = ""
    email_smtp_use_tls: bool = True
    email_sender: str = ""
    email_from_name: str = "Notification System"

    # SMS gateway stub
    sms_simulated_delay_seconds: float = 0.1

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def _channel_defaults(self) -> "Settings":
        name = self.channel.value
        if not self.service_name:
            self.service_name = f"{name}-service"
        if not self.service_port:
            self.service_port = _DEFAULT_PORTS[self.channel]
        if not self.inbound_stream:
            self.inbound_stream = f"notification_{name}_topic"
        if not self.ack_stream:
            self.ack_stream = f"notification_{name}_ack_topic"
        if not self.consumer_group:
            self.consumer_group = f"{name}-service-group"
        if not self.consumer_name:
            self.consumer_name = f"{socket.gethostname()}-{os.getpid()}"
        return self

    def check_credentials(self) -> None:
        """Raise ConfigError naming the first missing credential for the active channel."""
        required = {
            Channel.WHATSAPP: ("whatsapp_access_token", "whatsapp_phone_number_id"),
            Channel.EMAIL: ("email_sender", "email_smtp_user", "email_smtp_password"),
            Channel.SMS: (),
        }[self.channel]

        if not self.redis_url:
            raise ConfigError("REDIS_URL is required")
        for key in required:
            if not getattr(self, key):
                raise ConfigError(f"{key.upper()} is required")
