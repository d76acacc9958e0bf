from __future__ import annotations

from typing import Dict, FrozenSet

from fieldservice.errors import InvalidTransition

# statut courant -> statuts atteignables (hors statut identique, toujours permis)
SERVICE_ORDER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "Pending": frozenset({"InProgress", "Canceled"}),
    "InProgress": frozenset({"Completed", "Canceled"}),
    "Completed": frozenset(),
    "Canceled": frozenset(),
}

QUOTE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "Draft": frozenset({"Sent"}),
    "Sent": frozenset({"Accepted", "Rejected"}),
    "Accepted": frozenset(),
    "Rejected": frozenset(),
}

CONTRACT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "Active": frozenset({"Expired", "Canceled"}),
    "Expired": frozenset(),
    "Canceled": frozenset(),
}

PAYMENT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "Pending": frozenset({"Paid", "Overdue", "Canceled"}),
    "Overdue": frozenset({"Paid", "Canceled"}),
    "Paid": frozenset(),
    "Canceled": frozenset(),
}

_LABELS = {
    "service_order": ("ordem de serviço", SERVICE_ORDER_TRANSITIONS),
    "quote": ("orçamento", QUOTE_TRANSITIONS),
    "contract": ("contrato", CONTRACT_TRANSITIONS),
}


def is_allowed(table: Dict[str, FrozenSet[str]], current: str, new: str) -> bool:
    return current == new or new in table.get(current, frozenset())


def check_transition(document: str, current: str, new: str) -> None:
    label, table = _LABELS[document]
    if not is_allowed(table, current, new):
        raise InvalidTransition(f"Transição de status inválida para {label}: {current} → {new}.")


def payment_transition_allowed(current: str, new: str, strict: bool = False) -> bool:
    """
    Single policy point for invoice ``payment_status`` changes.

    By default every status is reachable from every other (plain overwrite);
    ``strict`` applies PAYMENT_TRANSITIONS instead.
    """
    if not strict:
        return True
    return is_allowed(PAYMENT_TRANSITIONS, current, new)
