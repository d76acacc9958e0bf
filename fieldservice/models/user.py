from __future__ import annotations
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from .common import Record

UserStatus = Literal["Active", "Inactive"]


class User(Record):
    name: str
    username: Optional[str] = None
    email: EmailStr
    role: str = "Técnico"
    status: UserStatus = "Active"


class UserCandidate(BaseModel):
    """Registration payload; the password never reaches the stored User."""

    name: str
    username: Optional[str] = None
    email: EmailStr
    role: str = "Técnico"
    password: Optional[str] = Field(default=None, repr=False)
