import pytest
from fastapi.testclient import TestClient

from src.config import config_instance
from src.config.config import EmailSettings, FormSettings
from src.email.email import Emailer, get_emailer
from src.email.transports import MailTransport, MailTransportError, OutboundEmail
from src.main.main import app
from src.ratelimit import ip_rate_limits


class RecordingTransport(MailTransport):
    """keeps every message handed to it, raises `error` instead when one is set"""
    name = "recording"

    def __init__(self):
        self.messages: list[OutboundEmail] = []
        self.error: MailTransportError | None = None

    async def send(self, message: OutboundEmail) -> None:
        if self.error is not None:
            raise self.error
        self.messages.append(message)


@pytest.fixture(autouse=True)
def fresh_settings():
    """settings are cached per process, tests that patch the environment need a fresh copy"""
    config_instance.cache_clear()
    ip_rate_limits.clear()
    yield
    config_instance.cache_clear()
    ip_rate_limits.clear()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def emailer(transport):
    return Emailer(transport=transport,
                   email_settings=EmailSettings(SENDER="relay@example.com", RECIPIENT="owner@example.com"),
                   form_settings=FormSettings())


@pytest.fixture
def client(emailer):
    app.dependency_overrides[get_emailer] = lambda: emailer
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
