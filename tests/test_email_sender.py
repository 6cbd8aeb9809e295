import logging

import pytest

from festreg.controller import email_sender


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def sendmail(self, sender, to, message):
        FakeSMTP.sent.append((to, message))

    def quit(self):
        pass


@pytest.fixture
def smtp_enabled(monkeypatch):
    monkeypatch.setattr(email_sender, "EMAIL_ENABLED", True)
    FakeSMTP.sent = []


def test_disabled_email_is_skipped(monkeypatch):
    monkeypatch.setattr(email_sender, "EMAIL_ENABLED", False)
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    FakeSMTP.sent = []

    assert email_sender.send_email("a@example.com", "Hello", "<p>hi</p>") is False
    assert FakeSMTP.sent == []


def test_rejected_email_is_sent(smtp_enabled, monkeypatch):
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)

    sent = email_sender.send_order_rejected_email(
        recipient={"email": "lead@example.com", "first_name": "Asha", "last_name": "K"},
        order_id="ORD000007",
        transaction_id="TXN9",
        reason="<b>blurry</b> screenshot",
    )

    assert sent is True
    to, message = FakeSMTP.sent[0]
    assert to == "lead@example.com"
    assert "ORD000007" in message


@pytest.mark.parametrize("error", [OSError("connection refused"), RuntimeError("boom")])
def test_send_failure_is_logged_not_raised(smtp_enabled, monkeypatch, caplog, error):
    def broken_smtp(*args, **kwargs):
        raise error

    monkeypatch.setattr(email_sender.smtplib, "SMTP", broken_smtp)

    with caplog.at_level(logging.ERROR, logger=email_sender.__name__):
        sent = email_sender.send_email("a@example.com", "Hello", "<p>hi</p>")

    assert sent is False
    assert "Failed to send 'Hello' to a@example.com" in caplog.text
