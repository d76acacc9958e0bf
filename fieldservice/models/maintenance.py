from __future__ import annotations
from decimal import Decimal
from typing import Literal, Optional

from pydantic import model_validator

from .common import Money, Record, Timestamp

ContractStatus = Literal["Active", "Expired", "Canceled"]


class MaintenanceContract(Record):
    contract_number: str
    client_id: str
    client_name: str
    type: str = ""
    start_date: Timestamp
    end_date: Timestamp
    monthly_value: Money = Decimal(0)
    scope: Optional[str] = None
    status: ContractStatus = "Active"

    @model_validator(mode="after")
    def _check_period(self) -> "MaintenanceContract":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self
