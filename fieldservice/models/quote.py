from __future__ import annotations
from decimal import Decimal
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .common import Money, Record, Timestamp, gen_id

QuoteStatus = Literal["Draft", "Sent", "Accepted", "Rejected"]


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: gen_id("item-"))
    description: str
    quantity: Decimal = Field(default=Decimal(1), ge=0)
    unit_price: Money = Decimal(0)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


class Quote(Record):
    quote_number: str
    client_id: str
    client_name: str
    quote_date: Timestamp
    valid_until: Optional[Timestamp] = None
    items: Tuple[LineItem, ...] = ()
    # totaux fournis par l'appelant, jamais recalculés
    subtotal: Money = Decimal(0)
    discount: Money = Decimal(0)
    total: Money = Decimal(0)
    observations: Optional[str] = None
    commercial_conditions: Optional[str] = None
    status: QuoteStatus = "Draft"
    invoice_id: Optional[str] = None
