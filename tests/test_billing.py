import json
import re
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import make_client
from fieldservice.app import FieldServiceApp
from fieldservice.config import Settings
from fieldservice.errors import (
    AlreadyInvoiced,
    ClientNotFound,
    InvalidTransition,
    InvoiceNotFound,
    OriginNotFound,
    ValidationError,
)
from fieldservice.services.billing import boleto_line, nfe_access_key

ITEMS = [{"description": "X", "quantity": 2, "unit_price": 100}]


def _accept(app, quote):
    app.lifecycle.change_quote_status(quote.id, "Sent")
    return app.lifecycle.change_quote_status(quote.id, "Accepted")


def _complete(app, order):
    app.lifecycle.change_service_order_status(order.id, "InProgress")
    return app.lifecycle.change_service_order_status(order.id, "Completed")


def test_issue_invoice_from_quote(app, quote):
    invoice = app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)

    assert invoice.total == Decimal(200)
    assert invoice.payment_status == "Pending"
    assert invoice.invoice_number == "000001"
    assert invoice.origin_type == "quote"
    assert invoice.client_name == "Tech Solutions"
    assert invoice.items[0].description == "X"
    assert app.store.quotes.get(quote.id).invoice_id == invoice.id
    assert app.store.invoices.list()[0] == invoice


def test_issue_invoice_twice_fails_second_time(app, quote):
    first = app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    with pytest.raises(AlreadyInvoiced):
        app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    assert app.store.invoices.list() == (first,)


def test_due_date_is_fifteen_days_after_issue(app, quote, service_order):
    a = app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    b = app.billing.issue_invoice(service_order.id, "serviceOrder", [], "150.00")
    for invoice in (a, b):
        assert invoice.due_date - invoice.issue_date == timedelta(days=15)
    assert b.invoice_number == "000002"


def test_origin_not_found(app, quote):
    with pytest.raises(OriginNotFound):
        app.billing.issue_invoice("qt-missing", "quote", ITEMS, 200)
    # un id d'orçamento n'est pas une OS
    with pytest.raises(OriginNotFound):
        app.billing.issue_invoice(quote.id, "serviceOrder", ITEMS, 200)


def test_unknown_origin_type(app, quote):
    with pytest.raises(ValidationError):
        app.billing.issue_invoice(quote.id, "contract", ITEMS, 200)


def test_negative_total_leaves_store_untouched(app, quote):
    with pytest.raises(ValidationError):
        app.billing.issue_invoice(quote.id, "quote", ITEMS, -10)
    assert len(app.store.invoices) == 0
    assert app.store.quotes.get(quote.id).invoice_id is None
    assert app.billing.issue_invoice(quote.id, "quote", ITEMS, 200).invoice_number == "000001"


def test_client_not_found(app, quote):
    # document orphelin (client absent du store)
    orphan = quote.replace(id="qt-orphan", client_id="cli-gone")
    app.store.quotes.insert(orphan)
    with pytest.raises(ClientNotFound):
        app.billing.issue_invoice("qt-orphan", "quote", ITEMS, 200)


def test_invoice_id_survives_later_updates(app, quote):
    invoice = app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    current = app.store.quotes.get(quote.id)
    updated = app.lifecycle.update_quote({**current.model_dump(), "invoice_id": None, "observations": "ok"})
    assert updated.invoice_id == invoice.id
    assert updated.observations == "ok"


def test_synthesized_payment_data(app, quote):
    invoice = app.billing.issue_invoice(quote.id, "quote", ITEMS, "5150.5")

    assert re.fullmatch(r"\d{44}", invoice.nfe_data.access_key)
    line = invoice.payment_data.boleto.digitable_line
    due_ms = int(invoice.due_date.timestamp() * 1000)
    assert line.endswith(f"{due_ms}00000{515050:010d}")
    assert invoice.payment_data.pix.copy_paste.startswith("000201")


def test_boleto_line_pads_cents():
    line = boleto_line(datetime(2025, 1, 1, tzinfo=timezone.utc), Decimal("200"))
    assert line.endswith("0000020000")


def test_access_keys_differ():
    assert nfe_access_key() != nfe_access_key()


def test_update_invoice_status_overwrites(app, quote):
    invoice = app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    paid = app.billing.update_invoice_status(invoice.id, "Paid")
    assert paid.payment_status == "Paid"
    # sans contrôle de transition par défaut
    back = app.billing.update_invoice_status(invoice.id, "Pending")
    assert back.payment_status == "Pending"
    assert back.invoice_number == invoice.invoice_number
    assert back.due_date == invoice.due_date


def test_update_invoice_status_unknown_invoice(app):
    with pytest.raises(InvoiceNotFound):
        app.billing.update_invoice_status("inv-missing", "Paid")


def test_update_invoice_status_rejects_unknown_status(app, quote):
    invoice = app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    with pytest.raises(ValidationError):
        app.billing.update_invoice_status(invoice.id, "Refunded")


def test_strict_payment_status():
    app = FieldServiceApp.create(Settings(strict_payment_status=True), persistent=False)
    make_client(app.store)
    q = app.lifecycle.create_quote(client_id="cli-1", quote_date="2025-01-01T00:00:00Z",
                                   items=[], subtotal=0, discount=0, total=0)
    invoice = app.billing.issue_invoice(q.id, "quote", [], 0)
    app.billing.update_invoice_status(invoice.id, "Paid")
    with pytest.raises(InvalidTransition):
        app.billing.update_invoice_status(invoice.id, "Pending")


def test_list_billable(app, quote, service_order):
    assert app.billing.list_billable() == []

    _accept(app, quote)
    done = _complete(app, service_order)
    billable = app.billing.list_billable()
    assert {(b.origin_type, b.origin_id) for b in billable} == {("quote", quote.id), ("serviceOrder", done.id)}
    # plus récent d'abord : l'OS vient d'être conclue
    assert billable[0].origin_type == "serviceOrder"
    assert billable[0].value == Decimal(0)
    assert billable[1].value == Decimal(200)

    app.billing.issue_invoice(quote.id, "quote", ITEMS, 200)
    assert [b.origin_id for b in app.billing.list_billable()] == [done.id]


def test_seeded_billable_documents(seeded_app):
    numbers = sorted(b.number for b in seeded_app.billing.list_billable())
    assert numbers == ["ORC-0002", "OS-0003"]


def test_concurrent_issuance_bills_once(app, quote):
    results, errors = [], []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            results.append(app.billing.issue_invoice(quote.id, "quote", ITEMS, 200))
        except AlreadyInvoiced as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 1
    assert len(errors) == 7
    assert len(app.store.invoices) == 1


def test_concurrent_creation_never_reuses_numbers(app, client):
    def worker():
        for _ in range(10):
            app.lifecycle.create_service_order(client.id, "d", "t", "l", "2025-01-01T00:00:00Z")

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    numbers = {o.service_order_number for o in app.store.service_orders}
    assert len(numbers) == 50
    assert "OS-0050" in numbers


@pytest.mark.parametrize("items", [["X"], None, "X", 42, [{"quantity": 1}]])
def test_malformed_items_are_rejected(app, quote, items):
    with pytest.raises(ValidationError):
        app.billing.issue_invoice(quote.id, "quote", items, 200)
    assert len(app.store.invoices) == 0
    assert app.store.quotes.get(quote.id).invoice_id is None
    assert app.billing.issue_invoice(quote.id, "quote", ITEMS, 200).invoice_number == "000001"


def test_failed_source_write_leaves_no_invoice(tmp_path, monkeypatch):
    app = FieldServiceApp.create(Settings(data_dir=tmp_path))
    make_client(app.store)
    q = app.lifecycle.create_quote(client_id="cli-1", quote_date="2025-01-01T00:00:00Z",
                                   items=ITEMS, subtotal=200, discount=0, total=200)

    def disk_full(records):
        raise OSError("No space left on device")

    monkeypatch.setattr(app.store.quotes._repo, "write_all", disk_full)
    with pytest.raises(OSError):
        app.billing.issue_invoice(q.id, "quote", ITEMS, 200)

    assert len(app.store.invoices) == 0
    assert app.store.quotes.get(q.id).invoice_id is None
    assert json.loads((tmp_path / "invoices.json").read_text(encoding="utf-8")) == []

    monkeypatch.undo()
    invoice = app.billing.issue_invoice(q.id, "quote", ITEMS, 200)
    assert invoice.invoice_number == "000001"
    reopened = FieldServiceApp.create(Settings(data_dir=tmp_path))
    assert reopened.store.quotes.get(q.id).invoice_id == invoice.id
