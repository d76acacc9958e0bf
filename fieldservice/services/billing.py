from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Mapping, Optional, Union

from fieldservice.errors import (
    AlreadyInvoiced,
    ClientNotFound,
    InvalidTransition,
    InvoiceNotFound,
    NotFound,
    OriginNotFound,
    ValidationError,
)
from fieldservice.models.client import display_name
from fieldservice.models.common import gen_id, utcnow
from fieldservice.models.invoice import Invoice, PaymentData
from fieldservice.models.quote import LineItem
from fieldservice.services.numbering import NumberingAuthority
from fieldservice.services.transitions import payment_transition_allowed
from fieldservice.services.validation import build, line_items, money
from fieldservice.storage.store import Collection, EntityStore

logger = logging.getLogger(__name__)

INVOICE_DUE_DAYS = 15

# ---------- Données de paiement simulées (pas de vrai boleto / PIX) ----------
BOLETO_BANK_FIELDS = "23793.38128 60094.836171 63527.240008 5"
BOLETO_BARCODE_URL = "https://via.placeholder.com/400x80.png?text=Simulated+Barcode"
PIX_QR_CODE_URL = "https://via.placeholder.com/200x200.png?text=Simulated+PIX+QR+Code"
PIX_COPY_PASTE = (
    "00020126580014br.gov.bcb.pix0136123e4567-e89b-12d3-a456-426614174000"
    "53039865802BR5913NOME DA EMPRESA6009SAO PAULO62070503***6304E2A7"
)
NFE_ACCESS_KEY_DIGITS = 44


def _to_cents(total: Decimal) -> int:
    return int((total * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def nfe_access_key() -> str:
    """Jeton aléatoire de 44 chiffres (format d'une chave de acesso NF-e)."""
    return "".join(secrets.choice("0123456789") for _ in range(NFE_ACCESS_KEY_DIGITS))


def boleto_line(due_date: datetime, total: Decimal) -> str:
    due_ms = int(due_date.timestamp() * 1000)
    return f"{BOLETO_BANK_FIELDS} {due_ms}00000{_to_cents(total):010d}"


def payment_data(due_date: datetime, total: Decimal) -> PaymentData:
    return PaymentData.model_validate({
        "boleto": {"digitable_line": boleto_line(due_date, total), "barcode_url": BOLETO_BARCODE_URL},
        "pix": {"qr_code_url": PIX_QR_CODE_URL, "copy_paste": PIX_COPY_PASTE},
    })


@dataclass(frozen=True)
class BillableItem:
    origin_type: str
    origin_id: str
    number: str
    client_name: str
    date: datetime
    value: Decimal


class BillingEngine:
    """
    Faturamento : OS concluída ou orçamento aceito -> fatura.

    Une seule fatura par document source : ``invoice_id`` sur le document,
    vérifié puis posé dans la même section critique que l'insertion.
    """

    def __init__(
        self,
        store: EntityStore,
        numbering: NumberingAuthority,
        *,
        strict_payment_status: bool = False,
    ):
        self.store = store
        self.numbering = numbering
        self.strict_payment_status = strict_payment_status
        numbering.seed("invoice", (inv.invoice_number for inv in store.invoices))

    def _origin_collection(self, origin_type: str) -> Collection:
        if origin_type == "serviceOrder":
            return self.store.service_orders
        if origin_type == "quote":
            return self.store.quotes
        raise ValidationError(f"Tipo de origem inválido: {origin_type!r}.")

    # ----------- émission -----------
    def issue_invoice(
        self,
        origin_id: str,
        origin_type: str,
        items: Iterable[Union[LineItem, Mapping[str, Any]]],
        total: Union[Decimal, float, str],
    ) -> Invoice:
        origins = self._origin_collection(origin_type)
        amount = money(total, "total")
        items = line_items(items)

        with self.store.writing():
            try:
                source = origins.get(origin_id)
            except NotFound:
                raise OriginNotFound("Documento de origem não encontrado.") from None
            if source.invoice_id:
                raise AlreadyInvoiced("Este documento já foi faturado.")
            if source.client_id not in self.store.clients:
                raise ClientNotFound("Cliente não encontrado.")
            client = self.store.clients.get(source.client_id)

            issue_date = utcnow()
            due_date = issue_date + timedelta(days=INVOICE_DUE_DAYS)
            invoice = build(Invoice.model_validate, {
                "id": gen_id("inv-"),
                "invoice_number": self.numbering.peek("invoice"),
                "origin_type": origin_type,
                "origin_id": origin_id,
                "client_id": client.id,
                "client_name": display_name(client),
                "issue_date": issue_date,
                "due_date": due_date,
                "items": items,
                "total": amount,
                "payment_status": "Pending",
                "nfe_data": {"access_key": nfe_access_key()},
                "payment_data": payment_data(due_date, amount).model_dump(),
            })
            billed_source = source.replace(invoice_id=invoice.id)

            # fatura + invoice_id sur la source : publiés ensemble ou pas du tout
            self.store.commit(
                (self.store.invoices, self.store.invoices.inserting(invoice)),
                (origins, origins.replacing(billed_source)),
            )
            self.numbering.allocate("invoice")

        logger.info(
            "Invoice %s issued from %s %s (total=%s)",
            invoice.invoice_number, origin_type, origin_id, invoice.total,
        )
        return invoice

    # ----------- statut de paiement -----------
    def update_invoice_status(self, invoice_id: str, new_status: str) -> Invoice:
        with self.store.writing():
            try:
                current = self.store.invoices.get(invoice_id)
            except NotFound:
                raise InvoiceNotFound("Fatura não encontrada.") from None
            if not payment_transition_allowed(current.payment_status, new_status, self.strict_payment_status):
                raise InvalidTransition(
                    f"Transição de status inválida para fatura: {current.payment_status} → {new_status}."
                )
            invoice = build(Invoice.model_validate, {**current.model_dump(), "payment_status": new_status})
            self.store.invoices.put(invoice)
        logger.info("Invoice %s: %s -> %s", invoice.invoice_number, current.payment_status, new_status)
        return invoice

    # ----------- lecture -----------
    def get_invoice(self, invoice_id: str) -> Invoice:
        try:
            return self.store.invoices.get(invoice_id)
        except NotFound:
            raise InvoiceNotFound("Fatura não encontrada.") from None

    def list_invoices(self) -> List[Invoice]:
        return list(self.store.invoices.list())

    def invoice_for_origin(self, origin_id: str) -> Optional[Invoice]:
        return self.store.invoices.find_one(lambda inv: inv.origin_id == origin_id)

    def list_billable(self) -> List[BillableItem]:
        """OS concluídas e orçamentos aceitos ainda não faturados, plus récents d'abord."""
        items: List[BillableItem] = []
        for os_ in self.store.service_orders.find(lambda o: o.status == "Completed" and not o.invoice_id):
            items.append(BillableItem(
                origin_type="serviceOrder",
                origin_id=os_.id,
                number=os_.service_order_number,
                client_name=os_.client_name,
                date=os_.completed_at or os_.scheduled_date,
                value=Decimal(0),
            ))
        for q in self.store.quotes.find(lambda q: q.status == "Accepted" and not q.invoice_id):
            items.append(BillableItem(
                origin_type="quote",
                origin_id=q.id,
                number=q.quote_number,
                client_name=q.client_name,
                date=q.quote_date,
                value=q.total,
            ))
        items.sort(key=lambda it: it.date, reverse=True)
        return items
