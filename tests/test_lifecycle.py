from datetime import datetime, timezone

import pytest

from conftest import make_client
from fieldservice.errors import ClientNotFound, InvalidTransition, NotFound, ValidationError
from fieldservice.models.client import ClientAdapter, display_name


def _order(app, client_id="cli-1", scheduled="2025-03-10T09:00:00Z"):
    return app.lifecycle.create_service_order(
        client_id=client_id,
        request_description="Instalar câmeras",
        service_type="Instalação",
        location="Av. Principal, 456",
        scheduled_date=scheduled,
        notes=None,
    )


def test_create_service_order_on_empty_store(app, client):
    order = _order(app)

    assert order.client_name == "Tech Solutions"
    assert order.status == "Pending"
    assert order.service_order_number == "OS-0001"
    assert order.invoice_id is None
    assert app.store.service_orders.list() == (order,)


def test_service_order_numbers_follow_previous_maximum(app, client):
    numbers = [_order(app).service_order_number for _ in range(3)]
    assert numbers == ["OS-0001", "OS-0002", "OS-0003"]
    # plus récent en tête
    assert [o.service_order_number for o in app.store.service_orders.list()] == ["OS-0003", "OS-0002", "OS-0001"]


def test_numbering_continues_after_seeded_documents(seeded_app):
    order = _order(seeded_app)
    assert order.service_order_number == "OS-0004"


def test_create_service_order_unknown_client(app):
    with pytest.raises(ClientNotFound):
        _order(app, client_id="cli-missing")
    assert len(app.store.service_orders) == 0


def test_invalid_payload_does_not_consume_a_number(app, client):
    with pytest.raises(ValidationError):
        _order(app, scheduled="not-a-date")
    assert _order(app).service_order_number == "OS-0001"


def test_update_service_order_is_idempotent(app, client, service_order):
    once = app.lifecycle.update_service_order(service_order)
    twice = app.lifecycle.update_service_order(once)
    assert once == twice
    assert app.store.service_orders.get(service_order.id) == once


def test_update_unknown_service_order(app, client, service_order):
    ghost = service_order.model_dump()
    ghost["id"] = "os-ghost"
    with pytest.raises(NotFound):
        app.lifecycle.update_service_order(ghost)


def test_update_rederives_client_name(app, client, service_order):
    make_client(app.store, "cli-4", kind="natural_person", nome_completo="Fernanda Costa", cpf="123.456.789-00")
    updated = app.lifecycle.update_service_order({**service_order.model_dump(), "client_id": "cli-4"})
    assert updated.client_name == "Fernanda Costa"


def test_update_with_unknown_client_is_rejected(app, client, service_order):
    with pytest.raises(ClientNotFound):
        app.lifecycle.update_service_order({**service_order.model_dump(), "client_id": "nope"})
    assert app.store.service_orders.get(service_order.id) == service_order


def test_update_resorts_by_scheduled_date_desc(app, client):
    early = _order(app, scheduled="2025-01-01T00:00:00Z")
    _order(app, scheduled="2025-02-01T00:00:00Z")
    app.lifecycle.update_service_order({**early.model_dump(), "scheduled_date": "2025-06-01T00:00:00Z"})
    first = app.store.service_orders.list()[0]
    assert first.id == early.id


def test_service_order_status_flow(app, client, service_order):
    in_progress = app.lifecycle.change_service_order_status(service_order.id, "InProgress")
    assert in_progress.status == "InProgress"
    done = app.lifecycle.change_service_order_status(service_order.id, "Completed")
    assert done.status == "Completed"
    assert done.completed_at is not None


def test_completed_at_supplied_by_caller_is_kept(app, client, service_order):
    app.lifecycle.change_service_order_status(service_order.id, "InProgress")
    when = datetime(2025, 3, 11, 17, 0, tzinfo=timezone.utc)
    done = app.lifecycle.change_service_order_status(service_order.id, "Completed", completed_at=when)
    assert done.completed_at == when


def test_service_order_cannot_skip_or_reopen(app, client, service_order):
    with pytest.raises(InvalidTransition):
        app.lifecycle.change_service_order_status(service_order.id, "Completed")
    app.lifecycle.change_service_order_status(service_order.id, "Canceled")
    with pytest.raises(InvalidTransition):
        app.lifecycle.change_service_order_status(service_order.id, "Pending")


def test_update_cannot_change_number_or_invoice_id(app, client, service_order):
    updated = app.lifecycle.update_service_order(
        {**service_order.model_dump(), "service_order_number": "OS-9999", "invoice_id": "inv-fake"}
    )
    assert updated.service_order_number == "OS-0001"
    assert updated.invoice_id is None


def test_quote_creation_and_flow(app, client, quote):
    assert quote.quote_number == "ORC-0001"
    assert quote.status == "Draft"
    assert quote.client_name == "Tech Solutions"
    assert str(quote.total) == "200"

    with pytest.raises(InvalidTransition):
        app.lifecycle.change_quote_status(quote.id, "Accepted")
    app.lifecycle.change_quote_status(quote.id, "Sent")
    accepted = app.lifecycle.change_quote_status(quote.id, "Accepted")
    assert accepted.status == "Accepted"
    with pytest.raises(InvalidTransition):
        app.lifecycle.change_quote_status(quote.id, "Sent")


def test_quote_total_is_trusted_not_recomputed(app, client):
    quote = app.lifecycle.create_quote(
        client_id=client.id,
        quote_date="2025-03-01T12:00:00Z",
        items=[{"description": "Cabo", "quantity": 10, "unit_price": "3.50"}],
        subtotal="35.00",
        discount="5.00",
        total="99.00",
    )
    assert str(quote.total) == "99.00"


def test_quote_rejects_negative_price(app, client):
    with pytest.raises(ValidationError):
        app.lifecycle.create_quote(
            client_id=client.id,
            quote_date="2025-03-01T12:00:00Z",
            items=[{"description": "X", "quantity": 1, "unit_price": -1}],
            subtotal=0,
            discount=0,
            total=0,
        )
    assert len(app.store.quotes) == 0


@pytest.mark.parametrize("items", [None, ["X"], "X"])
def test_quote_requires_a_list_of_items(app, client, items):
    with pytest.raises(ValidationError):
        app.lifecycle.create_quote(
            client_id=client.id, quote_date="2025-03-01T12:00:00Z", items=items, subtotal=0, discount=0, total=0,
        )
    assert len(app.store.quotes) == 0
    assert app.lifecycle.create_quote(
        client_id=client.id, quote_date="2025-03-01T12:00:00Z", items=[], subtotal=0, discount=0, total=0,
    ).quote_number == "ORC-0001"


def test_update_quote_without_items_keeps_lines(app, client, quote):
    updated = app.lifecycle.update_quote({"id": quote.id, "items": None, "observations": "ok"})
    assert updated.items == quote.items
    assert updated.observations == "ok"

    with pytest.raises(ValidationError):
        app.lifecycle.update_quote({"id": quote.id, "items": ["X"]})
    assert app.store.quotes.get(quote.id) == updated


def test_update_quote_resorts_by_quote_date(app, client, quote):
    newer = app.lifecycle.create_quote(
        client_id=client.id, quote_date="2025-04-01T00:00:00Z", items=[], subtotal=0, discount=0, total=0,
    )
    app.lifecycle.update_quote(newer)
    assert [q.id for q in app.store.quotes.list()] == [newer.id, quote.id]


def test_create_maintenance_contract(app, client):
    contract = app.lifecycle.create_maintenance_contract(
        client_id=client.id,
        type="Suporte Remoto",
        start_date="2025-01-01T00:00:00Z",
        end_date="2025-12-31T00:00:00Z",
        monthly_value="350.00",
        scope="Suporte remoto",
    )
    assert contract.contract_number == "CT-MAN-001"
    assert contract.status == "Active"
    expired = app.lifecycle.change_contract_status(contract.id, "Expired")
    assert expired.status == "Expired"
    with pytest.raises(InvalidTransition):
        app.lifecycle.change_contract_status(contract.id, "Active")


def test_contract_end_before_start(app, client):
    with pytest.raises(ValidationError):
        app.lifecycle.create_maintenance_contract(
            client_id=client.id,
            type="Suporte",
            start_date="2025-12-31T00:00:00Z",
            end_date="2025-01-01T00:00:00Z",
            monthly_value=10,
        )


def test_display_name_fallbacks():
    legal = ClientAdapter.validate_python({"id": "c1", "kind": "legal_entity", "razao_social": "ACME", "cnpj": "1"})
    person = ClientAdapter.validate_python({"id": "c2", "kind": "natural_person", "nome_completo": "Ana", "cpf": "2"})
    assert display_name(legal) == "ACME"
    assert display_name(person) == "Ana"
    assert display_name(None) == "Unknown"
