from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Self

import pytest

from catalogsync.adapters.notifier import LoggingNotifier, SmtpNotifier, build_notifier
from catalogsync.config.notifier import NotifierConfig, SmtpSettings


class FakeSmtp:
    """Stands in for ``smtplib.SMTP``; instances are kept for inspection."""

    instances: list[FakeSmtp] = []

    def __init__(self, host: str, port: int, *, timeout: float, fail: bool = False) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.fail = fail
        self.started_tls = False
        self.logins: list[tuple[str, str]] = []
        self.sent: list[EmailMessage] = []
        FakeSmtp.instances.append(self)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_exc: object) -> None:
        return None

    def starttls(self) -> None:
        self.started_tls = True

    def login(self, user: str, password: str) -> None:
        self.logins.append((user, password))

    def send_message(self, message: EmailMessage) -> None:
        if self.fail:
            raise smtplib.SMTPRecipientsRefused({})
        self.sent.append(message)


@pytest.fixture(autouse=True)
def reset_fake_smtp() -> None:
    FakeSmtp.instances.clear()


def _settings(**overrides: object) -> SmtpSettings:
    values: dict[str, object] = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "alerts",
        "password": "secret",
        "sender": "sync@example.com",
        "recipients": ("ops@example.com", "owner@example.com"),
    }
    values.update(overrides)
    return SmtpSettings(**values)  # type: ignore[arg-type]


def test_smtp_notifier_sends_plain_text_mail() -> None:
    notifier = SmtpNotifier(settings=_settings(), smtp_factory=FakeSmtp)

    notifier.send("Sync finished with failures", "100108: boom")

    (server,) = FakeSmtp.instances
    assert (server.host, server.port) == ("smtp.example.com", 587)
    assert server.started_tls
    assert server.logins == [("alerts", "secret")]
    (message,) = server.sent
    assert message["Subject"] == "[catalogsync] Sync finished with failures"
    assert message["To"] == "ops@example.com, owner@example.com"
    assert message["From"] == "sync@example.com"
    assert message.get_content().strip() == "100108: boom"


def test_smtp_notifier_skips_login_without_user() -> None:
    notifier = SmtpNotifier(settings=_settings(username=None), smtp_factory=FakeSmtp)

    notifier.send("subject", "body")

    assert FakeSmtp.instances[0].logins == []


def test_delivery_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def failing(host: str, port: int, *, timeout: float) -> FakeSmtp:
        return FakeSmtp(host, port, timeout=timeout, fail=True)

    notifier = SmtpNotifier(settings=_settings(), smtp_factory=failing)

    with caplog.at_level(logging.ERROR):
        notifier.send("Sync aborted by safety check", "too many deletions")

    assert "Could not deliver alert" in caplog.text


def test_logging_notifier_writes_a_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        LoggingNotifier().send("Reconciliation finished with errors", "details")

    assert "ALERT Reconciliation finished with errors" in caplog.text


def test_build_notifier_picks_the_transport() -> None:
    assert isinstance(build_notifier(NotifierConfig()), LoggingNotifier)
    assert isinstance(build_notifier(NotifierConfig(smtp=_settings())), SmtpNotifier)
