"""Email notifications over SMTP."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from email.message import EmailMessage
import smtplib
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from boopifier.core.errors import HandlerAdapterError
from boopifier.core.event import Event
from boopifier.handlers.base import HandlerAdapter, run_blocking


class EmailConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    smtp_host: str = Field(min_length=1)
    smtp_port: int = Field(default=587, gt=0, lt=65536)
    username: str | None = None
    password: str | None = None
    from_address: str = Field(alias="from", min_length=1)
    to: list[str] = Field(min_length=1)
    subject: str = "Boopifier notification"
    body: str = ""
    starttls: bool = True
    use_ssl: bool = False
    timeout: float = Field(default=10.0, gt=0)

    @field_validator("to", mode="before")
    @classmethod
    def split_single_address(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [addr.strip() for addr in value.split(",") if addr.strip()]
        return value

    @model_validator(mode="after")
    def check_tls_mode(self) -> EmailConfig:
        if self.use_ssl and self.starttls:
            self.starttls = False
        return self


SmtpFactory = Callable[[EmailConfig], smtplib.SMTP]


def default_smtp_factory(cfg: EmailConfig) -> smtplib.SMTP:
    if cfg.use_ssl:
        return smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout)
    return smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout)


class EmailHandler(HandlerAdapter):
    type_name: ClassVar[str] = "email"
    description: ClassVar[str] = "Email via SMTP"

    def __init__(self, smtp_factory: SmtpFactory = default_smtp_factory) -> None:
        self._smtp_factory = smtp_factory

    def build_message(self, cfg: EmailConfig) -> EmailMessage:
        message = EmailMessage()
        message["From"] = cfg.from_address
        message["To"] = ", ".join(cfg.to)
        message["Subject"] = cfg.subject
        message.set_content(cfg.body)
        return message

    def _send(self, cfg: EmailConfig, message: EmailMessage) -> None:
        with self._smtp_factory(cfg) as smtp:
            if cfg.starttls:
                smtp.starttls()
            if cfg.username:
                smtp.login(cfg.username, cfg.password or "")
            smtp.send_message(message)

    async def handle(self, config: Mapping[str, Any], event: Event) -> None:
        cfg = self.parse_config(EmailConfig, config)
        message = self.build_message(cfg)
        try:
            await run_blocking(self._send, cfg, message)
        except (smtplib.SMTPException, OSError) as e:
            raise HandlerAdapterError(self.type_name, f"SMTP delivery failed: {e}") from e
