"""Pydantic schemas for customer operations."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, EmailStr, Field

from app.models.customer import ACCOUNT_NUMBER_MAX_DIGITS
from app.schemas.common import CamelModel

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
ACCOUNT_NUMBER_PATTERN = rf"^\d{{7,{ACCOUNT_NUMBER_MAX_DIGITS}}}$"


class CustomerCreate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=64)
    last_name: str = Field(..., min_length=1, max_length=64)
    email: EmailStr = Field(..., validation_alias=AliasChoices("email", "emailAddress"))
    username: str = Field(..., min_length=3, max_length=64, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)
    account_number: str = Field(..., pattern=ACCOUNT_NUMBER_PATTERN)


class CustomerRead(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    username: str
    account_number: str
    balance: Decimal
    created_at: datetime | None = None


class CustomerPasswordUpdate(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)
