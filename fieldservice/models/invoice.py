from __future__ import annotations
from decimal import Decimal
from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict

from .common import Money, Record, Timestamp
from .quote import LineItem

OriginType = Literal["serviceOrder", "quote"]
PaymentStatus = Literal["Pending", "Paid", "Overdue", "Canceled"]


class NfeData(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_key: str


class BoletoData(BaseModel):
    model_config = ConfigDict(frozen=True)

    digitable_line: str
    barcode_url: str


class PixData(BaseModel):
    model_config = ConfigDict(frozen=True)

    qr_code_url: str
    copy_paste: str


class PaymentData(BaseModel):
    model_config = ConfigDict(frozen=True)

    boleto: BoletoData
    pix: PixData


class Invoice(Record):
    invoice_number: str
    origin_type: OriginType
    origin_id: str
    client_id: str
    client_name: str
    issue_date: Timestamp
    due_date: Timestamp
    items: Tuple[LineItem, ...] = ()
    total: Money = Decimal(0)
    payment_status: PaymentStatus = "Pending"
    nfe_data: NfeData
    payment_data: PaymentData
