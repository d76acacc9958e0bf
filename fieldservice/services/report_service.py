from __future__ import annotations
from typing import Dict, List, Union

from fieldservice.errors import ValidationError
from fieldservice.models.maintenance import MaintenanceContract
from fieldservice.models.quote import Quote
from fieldservice.models.service_order import ServiceOrder
from fieldservice.storage.store import EntityStore

ReportRecord = Union[ServiceOrder, Quote, MaintenanceContract]

_NUMBER_FIELDS = {
    "serviceOrders": ("service_orders", "service_order_number"),
    "quotes": ("quotes", "quote_number"),
    "maintenance": ("maintenance_contracts", "contract_number"),
}


class ReportService:
    """Indicateurs du tableau de bord et recherche de documents par numéro."""

    def __init__(self, store: EntityStore):
        self.store = store

    def status_counts(self) -> Dict[str, int]:
        counts = {"Pending": 0, "InProgress": 0, "Completed": 0, "Canceled": 0}
        for order in self.store.service_orders:
            counts[order.status] += 1
        return counts

    def recent_orders(self, limit: int = 5) -> List[ServiceOrder]:
        orders = sorted(self.store.service_orders, key=lambda o: o.scheduled_date, reverse=True)
        return orders[:limit]

    def find_by_number(self, report_type: str, number: str) -> List[ReportRecord]:
        if report_type not in _NUMBER_FIELDS:
            raise ValidationError(f"Tipo de relatório inválido: {report_type!r}.")
        term = (number or "").strip().lower()
        if not term:
            raise ValidationError("Por favor, digite o número do documento para gerar o relatório.")
        collection_name, field = _NUMBER_FIELDS[report_type]
        collection = getattr(self.store, collection_name)
        return collection.find(lambda r: getattr(r, field).lower() == term)
