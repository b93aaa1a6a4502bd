"""
Tests for the email gateway (lazy transport, failure reporting).
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from app.core.config import Settings
from app.core.email import EmailGateway, SMTPTransport


def _settings(**overrides) -> Settings:
    values = {"smtp_host": "smtp.famille.test", "smtp_from": "Noël Famille <noel@famille.test>"}
    values.update(overrides)
    return Settings(**values)


class TestUnconfigured:
    @pytest.mark.asyncio
    async def test_send_reports_false_without_building_transport(self):
        factory = MagicMock()
        gateway = EmailGateway(_settings(smtp_host="", smtp_from=""), transport_factory=factory)

        assert gateway.configured is False
        assert await gateway.send_email("mamie@famille.fr", "Sujet", "Texte") is False
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_host_without_sender_is_unconfigured(self):
        factory = MagicMock()
        gateway = EmailGateway(_settings(smtp_from=""), transport_factory=factory)

        assert await gateway.send_email("mamie@famille.fr", "Sujet", "Texte") is False
        factory.assert_not_called()


class TestConfigured:
    @pytest.mark.asyncio
    async def test_transport_built_once(self):
        transport = MagicMock()
        factory = MagicMock(return_value=transport)
        gateway = EmailGateway(_settings(), transport_factory=factory)

        assert await gateway.send_email("mamie@famille.fr", "Un", "Texte") is True
        assert await gateway.send_email("papy@famille.fr", "Deux", "Texte") is True

        factory.assert_called_once()
        assert transport.send.call_count == 2

    @pytest.mark.asyncio
    async def test_send_failure_reports_false(self):
        transport = MagicMock()
        transport.send.side_effect = OSError("connection refused")
        gateway = EmailGateway(_settings(), transport_factory=MagicMock(return_value=transport))

        assert await gateway.send_email("mamie@famille.fr", "Sujet", "Texte") is False

    @pytest.mark.asyncio
    async def test_message_carries_text_and_html(self):
        transport = MagicMock()
        gateway = EmailGateway(_settings(), transport_factory=MagicMock(return_value=transport))

        await gateway.send_email("mamie@famille.fr", "Rappel", "Bonjour", "<p>Bonjour</p>")

        message = transport.send.call_args.args[0]
        assert message["To"] == "mamie@famille.fr"
        assert message["From"] == "Noël Famille <noel@famille.test>"
        assert message["Subject"] == "Rappel"
        assert message.get_body(("plain",)).get_content().strip() == "Bonjour"
        assert message.get_body(("html",)).get_content().strip() == "<p>Bonjour</p>"


class TestSMTPTransport:
    def test_from_settings(self):
        transport = SMTPTransport.from_settings(
            _settings(smtp_port=465, smtp_secure=True, smtp_user="noel", smtp_pass="secret")
        )
        assert transport.host == "smtp.famille.test"
        assert transport.port == 465
        assert transport.secure is True
        assert transport.user == "noel"

    def test_plain_connection_upgrades_with_starttls(self):
        transport = SMTPTransport("smtp.famille.test", 587, user="noel", password="secret")
        message = MagicMock()
        with patch("app.core.email.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            smtp.has_extn.return_value = True
            transport.send(message)

        smtp_cls.assert_called_once_with("smtp.famille.test", 587, timeout=10)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("noel", "secret")
        smtp.send_message.assert_called_once_with(message)

    def test_secure_connection_skips_starttls(self):
        transport = SMTPTransport("smtp.famille.test", 465, secure=True)
        with patch("app.core.email.smtplib.SMTP_SSL") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            transport.send(MagicMock())

        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()
