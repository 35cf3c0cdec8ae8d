import smtplib
from unittest.mock import patch

import pytest

from egs_bridge.core.config import Settings
from egs_bridge.core.errors import EmailDeliveryError
from egs_bridge.services.email_service import EmailDispatcher


def _settings(**overrides):
    values = {"smtp_user": "cell@college.edu", "smtp_password": "pw", "smtp_host": "smtp.test", "smtp_port": 2525}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_unconfigured_dispatcher_refuses_to_send():
    dispatcher = EmailDispatcher(_settings(smtp_user=""))

    assert not dispatcher.is_configured
    with pytest.raises(EmailDeliveryError):
        dispatcher.send("a@college.edu", "Hi", "Body")


def test_send_uses_starttls_and_login():
    dispatcher = EmailDispatcher(_settings())

    with patch("egs_bridge.services.email_service.smtplib.SMTP") as smtp_cls:
        assert dispatcher.send("a@college.edu", "Subject", "Body") is True

    smtp_cls.assert_called_once_with("smtp.test", 2525, timeout=20)
    smtp = smtp_cls.return_value.__enter__.return_value
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("cell@college.edu", "pw")
    message = smtp.send_message.call_args[0][0]
    assert message["To"] == "a@college.edu"
    assert message["Subject"] == "Subject"


def test_transport_errors_become_email_delivery_errors():
    dispatcher = EmailDispatcher(_settings())

    with patch("egs_bridge.services.email_service.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad")
        with pytest.raises(EmailDeliveryError):
            dispatcher.send("a@college.edu", "Subject", "Body")


def test_connection_refused_is_wrapped():
    dispatcher = EmailDispatcher(_settings())

    with patch("egs_bridge.services.email_service.smtplib.SMTP", side_effect=ConnectionRefusedError()):
        with pytest.raises(EmailDeliveryError):
            dispatcher.send("a@college.edu", "Subject", "Body")
