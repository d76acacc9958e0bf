from __future__ import annotations

import re
from typing import Dict, Iterable, Optional

from fieldservice.config import NumberFormat, Settings


def next_number(prefix: str, width: int, current_count: int) -> str:
    """``("OS-", 4, 0) -> "OS-0001"``."""
    return f"{prefix}{current_count + 1:0{width}d}"


def _parse_sequence(number: Optional[str], prefix: str) -> int:
    if not number or not number.startswith(prefix):
        return 0
    m = re.fullmatch(r"\d+", number[len(prefix):])
    return int(m.group(0)) if m else 0


class NumberingAuthority:
    """
    Un compteur explicite par espace de numérotation (service_order, quote,
    contract, invoice). ``allocate`` doit être appelé sous le verrou
    d'écriture du store, dans la même section critique que l'insertion.
    """

    def __init__(self, formats: Dict[str, NumberFormat]):
        self._formats = dict(formats)
        self._counters: Dict[str, int] = {ns: 0 for ns in self._formats}

    @classmethod
    def from_settings(cls, settings: Settings) -> "NumberingAuthority":
        return cls({ns: settings.number_format(ns) for ns in ("service_order", "quote", "contract", "invoice")})

    def seed(self, namespace: str, existing_numbers: Iterable[Optional[str]]) -> None:
        """Repart du plus grand numéro déjà attribué dans la collection."""
        fmt = self._formats[namespace]
        highest = max((_parse_sequence(n, fmt.prefix) for n in existing_numbers), default=0)
        self._counters[namespace] = max(self._counters[namespace], highest)

    def current(self, namespace: str) -> int:
        return self._counters[namespace]

    def peek(self, namespace: str) -> str:
        fmt = self._formats[namespace]
        return next_number(fmt.prefix, fmt.width, self._counters[namespace])

    def allocate(self, namespace: str) -> str:
        number = self.peek(namespace)
        self._counters[namespace] += 1
        return number
