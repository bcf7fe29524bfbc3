"""Operator alert delivery."""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.config.notifier import NotifierConfig, SmtpSettings
    from catalogsync.domain.ports import Notifier

log = getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30.0


class LoggingNotifier:
    """Write alerts to the log only."""

    def send(self, subject: str, body: str) -> None:
        log.warning("ALERT %s\n%s", subject, body)


@dataclass(slots=True)
class SmtpNotifier:
    """Send alerts as plain-text e-mail; delivery failures are logged."""

    settings: SmtpSettings
    smtp_factory: Callable[..., smtplib.SMTP] | None = field(default=None)

    def send(self, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.settings.sender
        message["To"] = ", ".join(self.settings.recipients)
        message["Subject"] = f"[catalogsync] {subject}"
        message.set_content(body)

        try:
            with self._connect() as server:
                if not self.settings.use_ssl:
                    server.starttls()
                if self.settings.username:
                    server.login(self.settings.username, self.settings.password or "")
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            log.error("Could not deliver alert %r: %s", subject, exc)
            return
        log.info("Alert sent to %s: %s", list(self.settings.recipients), subject)

    def _connect(self) -> smtplib.SMTP:
        if self.smtp_factory is not None:
            return self.smtp_factory(
                self.settings.host, self.settings.port, timeout=SMTP_TIMEOUT_SECONDS
            )
        if self.settings.use_ssl:
            return smtplib.SMTP_SSL(
                self.settings.host, self.settings.port, timeout=SMTP_TIMEOUT_SECONDS
            )
        return smtplib.SMTP(self.settings.host, self.settings.port, timeout=SMTP_TIMEOUT_SECONDS)


def build_notifier(config: NotifierConfig) -> Notifier:
    if config.smtp is None:
        log.info("No SMTP settings; alerts go to the log")
        return LoggingNotifier()
    return SmtpNotifier(settings=config.smtp)


if TYPE_CHECKING:
    _logging_check: Notifier = LoggingNotifier()
