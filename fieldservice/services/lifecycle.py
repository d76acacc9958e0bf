from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel

from fieldservice.errors import ClientNotFound
from fieldservice.models.client import Client, display_name
from fieldservice.models.common import gen_id, utcnow
from fieldservice.models.maintenance import MaintenanceContract
from fieldservice.models.quote import LineItem, Quote
from fieldservice.models.service_order import ServiceOrder
from fieldservice.services.numbering import NumberingAuthority
from fieldservice.services.transitions import check_transition
from fieldservice.services.validation import build, line_items
from fieldservice.storage.store import EntityStore

logger = logging.getLogger(__name__)

RecordLike = Union[BaseModel, Mapping[str, Any]]


def _as_dict(record: RecordLike) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    return dict(record)


class LifecycleEngine:
    """
    Création / mise à jour des documents (OS, orçamentos, contratos).

    - client_name recalculé à chaque écriture qui touche client_id
    - transitions de statut contrôlées (voir transitions.py)
    - numéro et invoice_id jamais modifiables par l'appelant
    """

    def __init__(self, store: EntityStore, numbering: NumberingAuthority):
        self.store = store
        self.numbering = numbering
        numbering.seed("service_order", (o.service_order_number for o in store.service_orders))
        numbering.seed("quote", (q.quote_number for q in store.quotes))
        numbering.seed("contract", (c.contract_number for c in store.maintenance_contracts))

    # ---------------- Helpers ---------------- #

    def _client(self, client_id: Optional[str]) -> Client:
        if not client_id or client_id not in self.store.clients:
            raise ClientNotFound("Cliente não encontrado.")
        return self.store.clients.get(client_id)

    # ---------------- Ordens de serviço ---------------- #

    def create_service_order(
        self,
        client_id: str,
        request_description: str,
        service_type: str,
        location: str,
        scheduled_date: Union[datetime, str],
        notes: Optional[str] = None,
        technician: Optional[str] = None,
    ) -> ServiceOrder:
        with self.store.writing():
            client = self._client(client_id)
            order = build(ServiceOrder.model_validate, {
                "id": gen_id("os-"),
                "service_order_number": self.numbering.peek("service_order"),
                "client_id": client_id,
                "client_name": display_name(client),
                "request_description": request_description,
                "service_type": service_type,
                "location": location,
                "scheduled_date": scheduled_date,
                "notes": notes,
                "technician": technician,
                "status": "Pending",
            })
            self.store.service_orders.insert(order)
            self.numbering.allocate("service_order")
        logger.info("Service order %s created for client %s", order.service_order_number, client_id)
        return order

    def update_service_order(self, record: RecordLike) -> ServiceOrder:
        data = _as_dict(record)
        with self.store.writing():
            current = self.store.service_orders.get(data.get("id"))
            data = {**current.model_dump(), **data}
            client = self._client(data.get("client_id"))
            status = data.get("status", current.status)
            check_transition("service_order", current.status, status)

            completed_at = data.get("completed_at")
            if status == "Completed" and completed_at is None:
                completed_at = current.completed_at or utcnow()

            data.update(
                service_order_number=current.service_order_number,
                client_name=display_name(client),
                invoice_id=current.invoice_id,
                completed_at=completed_at,
            )
            order = build(ServiceOrder.model_validate, data)
            self.store.service_orders.put(order)
            self.store.service_orders.sort(key=lambda o: o.scheduled_date, reverse=True)
        if status != current.status:
            logger.info("Service order %s: %s -> %s", order.service_order_number, current.status, status)
        return order

    def change_service_order_status(
        self, order_id: str, status: str, completed_at: Optional[datetime] = None
    ) -> ServiceOrder:
        with self.store.writing():
            current = self.store.service_orders.get(order_id)
            data = current.model_dump()
            data["status"] = status
            if completed_at is not None:
                data["completed_at"] = completed_at
            return self.update_service_order(data)

    # ---------------- Orçamentos ---------------- #

    def create_quote(
        self,
        client_id: str,
        quote_date: Union[datetime, str],
        items: Iterable[Union[LineItem, Mapping[str, Any]]],
        subtotal: Union[Decimal, float, str],
        discount: Union[Decimal, float, str],
        total: Union[Decimal, float, str],
        valid_until: Optional[Union[datetime, str]] = None,
        observations: Optional[str] = None,
        commercial_conditions: Optional[str] = None,
    ) -> Quote:
        with self.store.writing():
            client = self._client(client_id)
            quote = build(Quote.model_validate, {
                "id": gen_id("qt-"),
                "quote_number": self.numbering.peek("quote"),
                "client_id": client_id,
                "client_name": display_name(client),
                "quote_date": quote_date,
                "valid_until": valid_until,
                "items": line_items(items),
                "subtotal": subtotal,
                "discount": discount,
                "total": total,
                "observations": observations,
                "commercial_conditions": commercial_conditions,
                "status": "Draft",
            })
            self.store.quotes.insert(quote)
            self.numbering.allocate("quote")
        logger.info("Quote %s created for client %s", quote.quote_number, client_id)
        return quote

    def update_quote(self, record: RecordLike) -> Quote:
        data = _as_dict(record)
        if data.get("items") is None:
            # items absent ou None : on garde les lignes existantes
            data.pop("items", None)
        with self.store.writing():
            current = self.store.quotes.get(data.get("id"))
            data = {**current.model_dump(), **data}
            client = self._client(data.get("client_id"))
            status = data.get("status", current.status)
            check_transition("quote", current.status, status)

            data.update(
                quote_number=current.quote_number,
                client_name=display_name(client),
                invoice_id=current.invoice_id,
            )
            data["items"] = line_items(data["items"])
            quote = build(Quote.model_validate, data)
            self.store.quotes.put(quote)
            self.store.quotes.sort(key=lambda q: q.quote_date, reverse=True)
        if status != current.status:
            logger.info("Quote %s: %s -> %s", quote.quote_number, current.status, status)
        return quote

    def change_quote_status(self, quote_id: str, status: str) -> Quote:
        with self.store.writing():
            data = self.store.quotes.get(quote_id).model_dump()
            data["status"] = status
            return self.update_quote(data)

    # ---------------- Contratos de manutenção ---------------- #

    def create_maintenance_contract(
        self,
        client_id: str,
        type: str,
        start_date: Union[datetime, str],
        end_date: Union[datetime, str],
        monthly_value: Union[Decimal, float, str],
        scope: Optional[str] = None,
    ) -> MaintenanceContract:
        with self.store.writing():
            client = self._client(client_id)
            contract = build(MaintenanceContract.model_validate, {
                "id": gen_id("man-"),
                "contract_number": self.numbering.peek("contract"),
                "client_id": client_id,
                "client_name": display_name(client),
                "type": type,
                "start_date": start_date,
                "end_date": end_date,
                "monthly_value": monthly_value,
                "scope": scope,
                "status": "Active",
            })
            self.store.maintenance_contracts.insert(contract)
            self.numbering.allocate("contract")
        logger.info("Maintenance contract %s created for client %s", contract.contract_number, client_id)
        return contract

    def change_contract_status(self, contract_id: str, status: str) -> MaintenanceContract:
        with self.store.writing():
            current = self.store.maintenance_contracts.get(contract_id)
            check_transition("contract", current.status, status)
            contract = build(MaintenanceContract.model_validate, {**current.model_dump(), "status": status})
            self.store.maintenance_contracts.put(contract)
        if status != current.status:
            logger.info("Contract %s: %s -> %s", contract.contract_number, current.status, status)
        return contract

    def get_service_order(self, order_id: str) -> ServiceOrder:
        return self.store.service_orders.get(order_id)

    def get_quote(self, quote_id: str) -> Quote:
        return self.store.quotes.get(quote_id)

    def get_contract(self, contract_id: str) -> MaintenanceContract:
        return self.store.maintenance_contracts.get(contract_id)

    def list_service_orders(self) -> List[ServiceOrder]:
        return list(self.store.service_orders.list())

    def list_quotes(self) -> List[Quote]:
        return list(self.store.quotes.list())

    def list_contracts(self) -> List[MaintenanceContract]:
        return list(self.store.maintenance_contracts.list())
