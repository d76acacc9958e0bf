from __future__ import annotations
from decimal import Decimal
from typing import Optional

from pydantic import Field

from .common import Money, Record


class Product(Record):
  sku: str
  name: str
  description: Optional[str] = None
  category: Optional[str] = None
  unit_of_measure: str = "unidade"
  quantity_in_stock: int = Field(default=0, ge=0)
  cost_price: Money = Decimal(0)
  selling_price: Money = Decimal(0)
  supplier: Optional[str] = None
