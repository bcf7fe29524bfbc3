"""Alert delivery settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_int, optional_env

DEFAULT_SMTP_PORT = 587


@dataclass(frozen=True, slots=True)
class SmtpSettings:
    host: str
    port: int = DEFAULT_SMTP_PORT
    username: str | None = None
    password: str | None = None
    use_ssl: bool = False
    sender: str = "catalogsync@localhost"
    recipients: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class NotifierConfig:
    """``smtp`` is ``None`` when alerts should only be logged."""

    smtp: SmtpSettings | None = None


def _split_recipients(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    parts = (part.strip() for part in raw.replace(";", ",").split(","))
    return tuple(part for part in parts if part)


def get_notifier_config() -> NotifierConfig:
    host = optional_env("SMTP_HOST")
    recipients = _split_recipients(optional_env("ALERT_EMAIL_TO"))
    if host is None or not recipients:
        return NotifierConfig(smtp=None)
    return NotifierConfig(
        smtp=SmtpSettings(
            host=host,
            port=env_int("SMTP_PORT", DEFAULT_SMTP_PORT, minimum=1),
            username=optional_env("SMTP_USER"),
            password=optional_env("SMTP_PASS"),
            use_ssl=(optional_env("SMTP_USE_SSL", "false") or "false").lower() == "true",
            sender=optional_env("ALERT_EMAIL_FROM") or "catalogsync@localhost",
            recipients=recipients,
        )
    )
