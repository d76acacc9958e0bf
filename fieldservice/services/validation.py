from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, List, Mapping, TypeVar

import pydantic
from pydantic import BaseModel, TypeAdapter

from fieldservice.errors import ValidationError
from fieldservice.models.common import Money
from fieldservice.models.quote import LineItem

T = TypeVar("T")


def _describe(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Dados inválidos - " + "; ".join(parts)


def build(parse: Callable[[Mapping[str, Any]], T], data: Mapping[str, Any]) -> T:
    """Construit un enregistrement ; toute erreur pydantic devient un ValidationError métier."""
    try:
        return parse(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e


_money = TypeAdapter(Money)


def money(value: Any, field: str = "valor") -> Decimal:
    """Montant >= 0 ; sinon ValidationError métier."""
    try:
        return _money.validate_python(value)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Dados inválidos - {field}: {e.errors()[0].get('msg')}") from e


_line_items = TypeAdapter(List[LineItem])


def line_items(items: Any) -> List[LineItem]:
    """Lignes de document validées ; None ou non-itérable -> ValidationError métier."""
    if items is None or isinstance(items, (str, bytes, Mapping)):
        raise ValidationError("Dados inválidos - items: lista de itens obrigatória")
    try:
        rows = [i.model_dump() if isinstance(i, BaseModel) else i for i in items]
    except TypeError as e:
        raise ValidationError("Dados inválidos - items: lista de itens obrigatória") from e
    return build(_line_items.validate_python, rows)
