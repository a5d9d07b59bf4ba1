"""
Central pytest configuration for the clinic API tests.

Provides test markers, storage fixtures (in-memory and SQLite-backed), a
fake payment gateway, the Flask app/client and bearer-token helpers.
"""

import os
from decimal import Decimal

import pytest

# Set early so import-time config never reaches a real database or Stripe
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["TESTING"] = "true"

from clinic.core.exceptions import PaymentProviderError  # noqa: E402
from clinic.db.session import (  # noqa: E402
    SessionLocal,
    create_tables,
    dispose_engines,
    drop_tables,
)
from clinic.domain.entities import PaymentIntentResult  # noqa: E402
from clinic.main import create_app  # noqa: E402
from clinic.repositories.memory_repository import InMemoryStorage  # noqa: E402
from clinic.repositories.sql_repository import SqlStorage  # noqa: E402
from clinic.services.payment_service import PaymentGateway  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_CONFIG = {
    "TESTING": True,
    "DATABASE_URL": TEST_DATABASE_URL,
    "SECRET_KEY": "test-secret-key",
    "JWT_SECRET_KEY": "test-jwt-secret",
    "RATELIMIT_ENABLED": False,
    "METRICS_ENABLED": False,
    "SENTRY_DSN": "",
    "LOG_TO_FILE": False,
}


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "auth: mark test as authentication-related")
    config.addinivalue_line("markers", "api: mark test as API endpoint test")
    config.addinivalue_line("markers", "services: mark test as service layer test")
    config.addinivalue_line("markers", "repositories: mark test as repository test")
    config.addinivalue_line("markers", "logging: mark test as logging-related")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        if "integration" in path:
            item.add_marker(pytest.mark.integration)
        if "service" in path:
            item.add_marker(pytest.mark.services)
        if "repositor" in path:
            item.add_marker(pytest.mark.repositories)


class FakePaymentGateway(PaymentGateway):
    """Records intents instead of calling Stripe."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def create_payment_intent(self, amount_minor, currency, metadata):
        self.calls.append(
            {"amount": amount_minor, "currency": currency, "metadata": metadata}
        )
        if self.fail:
            raise PaymentProviderError("Payment provider error: card_declined")
        n = len(self.calls)
        return PaymentIntentResult(
            intent_id=f"pi_test_{n}", client_secret=f"pi_test_{n}_secret_abc"
        )


# ===========================
# Storage fixtures
# ===========================


@pytest.fixture(scope="session", autouse=True)
def _dispose_engines():
    yield
    dispose_engines()


@pytest.fixture
def memory_storage():
    """Fresh in-memory storage per test."""
    return InMemoryStorage()


@pytest.fixture
def sql_database():
    """Empty schema on the shared in-memory SQLite engine."""
    drop_tables(TEST_DATABASE_URL)
    create_tables(TEST_DATABASE_URL)
    yield TEST_DATABASE_URL
    drop_tables(TEST_DATABASE_URL)


@pytest.fixture
def sql_storage(sql_database):
    storage = SqlStorage(SessionLocal(sql_database))
    yield storage
    storage.close()


# ===========================
# App fixtures
# ===========================


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture
def app(sql_database, payment_gateway):
    """Flask app backed by SqlStorage on in-memory SQLite."""
    app = create_app(
        overrides=TEST_CONFIG,
        storage_factory=lambda app: SqlStorage(SessionLocal(sql_database)),
        payment_gateway=payment_gateway,
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token_factory(app):
    """Build bearer tokens the way the identity provider issues them."""
    from clinic.core.security import create_actor_token

    def make_token(actor_id="staff-1", email="staff1@clinic.test", **kwargs):
        with app.app_context():
            return create_actor_token(actor_id, email, **kwargs)

    return make_token


@pytest.fixture
def auth_headers(token_factory):
    return {"Authorization": f"Bearer {token_factory()}"}


@pytest.fixture
def other_auth_headers(token_factory):
    """A second staff member, for ownership checks."""
    token = token_factory("staff-2", "staff2@clinic.test")
    return {"Authorization": f"Bearer {token}"}


# ===========================
# Data builders
# ===========================


@pytest.fixture
def make_item(memory_storage):
    """Create an inventory item directly in memory storage (no ledger row)."""

    def _make(**overrides):
        data = {
            "name": "Lidocaine cream",
            "category": "consumable",
            "quantity": 10,
            "min_stock_level": 3,
            "unit_cost": Decimal("4.50"),
            "location": "Treatment room 1",
        }
        data.update(overrides)
        return memory_storage.inventory.create(data)

    return _make


@pytest.fixture
def make_equipment(memory_storage):
    def _make(**overrides):
        data = {
            "name": "Autoclave",
            "status": "operational",
            "service_interval": 90,
            "location": "Sterilisation room",
        }
        data.update(overrides)
        return memory_storage.equipment.create(data)

    return _make
