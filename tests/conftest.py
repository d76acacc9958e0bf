"""
Shared fixtures: a fresh in-memory application per test.
"""
import pytest

from fieldservice.app import FieldServiceApp
from fieldservice.config import Settings
from fieldservice.models.client import ClientAdapter


def make_client(store, client_id="cli-1", **overrides):
    data = {
        "id": client_id,
        "kind": "legal_entity",
        "razao_social": "Tech Solutions",
        "cnpj": "12.345.678/0001-99",
    }
    data.update(overrides)
    client = ClientAdapter.validate_python(data)
    store.clients.insert(client)
    return client


@pytest.fixture
def app():
    return FieldServiceApp.create(Settings(), persistent=False)


@pytest.fixture
def seeded_app():
    return FieldServiceApp.create(Settings(), persistent=False, seed=True)


@pytest.fixture
def client(app):
    return make_client(app.store)


@pytest.fixture
def service_order(app, client):
    return app.lifecycle.create_service_order(
        client_id=client.id,
        request_description="Servidor lento",
        service_type="Manutenção",
        location="Rua das Inovações, 123",
        scheduled_date="2025-03-10T09:00:00Z",
        notes="Verificar logs",
    )


@pytest.fixture
def quote(app, client):
    return app.lifecycle.create_quote(
        client_id=client.id,
        quote_date="2025-03-01T12:00:00Z",
        items=[{"description": "X", "quantity": 2, "unit_price": 100}],
        subtotal=200,
        discount=0,
        total=200,
    )
