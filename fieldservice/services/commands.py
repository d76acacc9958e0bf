from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

from pydantic import TypeAdapter

from fieldservice.errors import FieldServiceError, ValidationError

if TYPE_CHECKING:
    from fieldservice.app import FieldServiceApp

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Any]

_result = TypeAdapter(Any)


class CommandDispatcher:
    """
    Interface commande/requête au format JSON : un nom de commande par
    opération, un payload dict en entrée.

    Succès : ``{"ok": True, "result": <enregistrement JSON>}``
    Échec  : ``{"ok": False, "error": {"kind": ..., "message": ...}}``
    """

    def __init__(self, app: "FieldServiceApp"):
        self.app = app
        lc, bl = app.lifecycle, app.billing
        self._handlers: Dict[str, Handler] = {
            # auth / utilisateurs
            "login": lambda p: app.auth.authenticate(p.get("username"), p.get("password")),
            "register_user": lambda p: app.auth.register_user(p),
            "list_users": lambda p: app.auth.list_users(),
            # cadastros
            "create_client": lambda p: app.clients.add_client(p),
            "list_clients": lambda p: app.clients.list_clients(),
            "create_product": lambda p: app.catalog.add_product(p),
            "list_products": lambda p: app.catalog.list_products(),
            # ordens de serviço
            "create_service_order": lambda p: lc.create_service_order(**p),
            "update_service_order": lambda p: lc.update_service_order(p),
            "change_service_order_status": lambda p: lc.change_service_order_status(**p),
            "list_service_orders": lambda p: lc.list_service_orders(),
            # orçamentos
            "create_quote": lambda p: lc.create_quote(**p),
            "update_quote": lambda p: lc.update_quote(p),
            "change_quote_status": lambda p: lc.change_quote_status(**p),
            "list_quotes": lambda p: lc.list_quotes(),
            # contratos
            "create_maintenance_contract": lambda p: lc.create_maintenance_contract(**p),
            "change_contract_status": lambda p: lc.change_contract_status(**p),
            "list_maintenance_contracts": lambda p: lc.list_contracts(),
            # faturamento
            "issue_invoice": lambda p: bl.issue_invoice(**p),
            "update_invoice_status": lambda p: bl.update_invoice_status(**p),
            "get_invoice": lambda p: bl.get_invoice(**p),
            "list_invoices": lambda p: bl.list_invoices(),
            "list_billable": lambda p: bl.list_billable(),
            # relatórios
            "dashboard": lambda p: {
                "status_counts": app.reports.status_counts(),
                "recent_orders": app.reports.recent_orders(),
            },
            "find_by_number": lambda p: app.reports.find_by_number(**p),
            "parse_service_request": lambda p: app.parse_service_request(**p),
        }

    @property
    def commands(self):
        return sorted(self._handlers)

    def dispatch(self, command: str, payload: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        try:
            handler = self._handlers.get(command)
            if handler is None:
                raise ValidationError(f"Comando desconhecido: {command!r}.")
            try:
                result = handler(dict(payload or {}))
            except TypeError as e:
                # kwargs manquants / inattendus dans le payload
                raise ValidationError(f"Parâmetros inválidos para {command}: {e}") from e
        except FieldServiceError as e:
            logger.warning("Command %s rejected: %s (%s)", command, e.kind, e.message)
            return {"ok": False, "error": e.to_dict()}
        return {"ok": True, "result": _result.dump_python(result, mode="json")}
