from __future__ import annotations
from datetime import date
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter

from .common import Record

UNKNOWN_CLIENT_NAME = "Unknown"


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str = ""
    number: str = ""
    complement: Optional[str] = None
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: Optional[EmailStr] = None
    email_nfe: Optional[EmailStr] = None
    email_billing: Optional[EmailStr] = None
    phone: Optional[str] = None
    mobile_phone: Optional[str] = None
    main_contact: Optional[str] = None
    financial_contact: Optional[str] = None


class _ClientBase(Record):
    address: Address = Field(default_factory=Address)
    contact: Contact = Field(default_factory=Contact)
    notes: Optional[str] = None


class LegalEntityClient(_ClientBase):
    kind: Literal["legal_entity"] = "legal_entity"
    razao_social: str = Field(min_length=1)
    nome_fantasia: Optional[str] = None
    cnpj: str = Field(min_length=1)
    inscricao_estadual: Optional[str] = None


class NaturalPersonClient(_ClientBase):
    kind: Literal["natural_person"] = "natural_person"
    nome_completo: str = Field(min_length=1)
    cpf: str = Field(min_length=1)
    rg: Optional[str] = None
    birth_date: Optional[date] = None


Client = Annotated[Union[LegalEntityClient, NaturalPersonClient], Field(discriminator="kind")]
ClientAdapter: TypeAdapter = TypeAdapter(Client)


def display_name(client: Optional[Client]) -> str:
    """Label cached on dependent documents: legal name, else personal name, else "Unknown"."""
    if client is None:
        return UNKNOWN_CLIENT_NAME
    name = getattr(client, "razao_social", None) or getattr(client, "nome_completo", None)
    return name or UNKNOWN_CLIENT_NAME
