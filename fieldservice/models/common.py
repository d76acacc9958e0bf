from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal
import uuid

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from typing import Annotated


def gen_id(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# montant >= 0 (prix, totaux, valeurs mensuelles)
Money = Annotated[Decimal, Field(ge=0)]


class Record(BaseModel):
    """Base of every stored record (frozen, replaced rather than mutated)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str

    def replace(self, **changes) -> "Record":
        # model_copy ne revalide pas : on repasse par le constructeur
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)


def _as_utc(value: datetime) -> datetime:
    # instants naïfs considérés UTC : les tris mélangent sinon naïf et aware
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


Timestamp = Annotated[datetime, AfterValidator(_as_utc)]
