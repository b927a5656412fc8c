import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.main import create_app
from app.services.notifier import Notifier
from tests.fakes import ADMIN_EMAIL, ADMIN_PASSWORD, MAIL_FROM, FakeTransport, SpyStore


@pytest.fixture
def settings(tmp_path):
    return Settings(
        STORE_BACKEND="json",
        BOOKINGS_FILE=str(tmp_path / "bookings.json"),
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        ADMIN_EMAIL=ADMIN_EMAIL,
        MAIL_FROM=MAIL_FROM,
        SMTP_HOST="smtp.example.com",
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def store(settings):
    return SpyStore(settings.BOOKINGS_FILE)


@pytest.fixture
def notifier(settings, transport):
    return Notifier(settings, transport=transport)


@pytest.fixture
def booking_app(settings, store, notifier):
    return create_app(settings, store=store, notifier=notifier)


@pytest.fixture
def client(booking_app):
    with TestClient(booking_app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ADMIN_PASSWORD}"}
