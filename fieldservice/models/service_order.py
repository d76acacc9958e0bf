from __future__ import annotations
from typing import Literal, Optional

from .common import Record, Timestamp

ServiceOrderStatus = Literal["Pending", "InProgress", "Completed", "Canceled"]


class ServiceOrder(Record):
    service_order_number: str
    client_id: str
    client_name: str
    request_description: str = ""
    service_type: str = ""
    location: str = ""
    scheduled_date: Timestamp
    notes: Optional[str] = None
    technician: Optional[str] = None
    status: ServiceOrderStatus = "Pending"
    completed_at: Optional[Timestamp] = None
    invoice_id: Optional[str] = None
