"""Schemas for customer payment submissions."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from app.models.transaction import RECIPIENT_ACCOUNT_MAX_DIGITS, TransactionStatus
from app.schemas.common import CamelModel

SWIFT_PATTERN = r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$"


class TransactionCreate(CamelModel):
    recipient_name: str = Field(..., min_length=1, max_length=128)
    recipient_bank: str = Field(..., min_length=1, max_length=128)
    recipient_account_number: str = Field(..., pattern=rf"^\d{{7,{RECIPIENT_ACCOUNT_MAX_DIGITS}}}$")
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    currency: str = Field(..., pattern=r"^[A-Z]{3}$")
    swift_code: str = Field(..., pattern=SWIFT_PATTERN)

    @field_validator("currency", "swift_code", mode="before")
    @classmethod
    def _normalise_code(cls, value: str) -> str:
        return value.strip().upper() if isinstance(value, str) else value


class TransactionRead(CamelModel):
    id: int
    customer_id: str
    recipient_name: str
    recipient_bank: str
    recipient_account_number: str
    amount: Decimal
    currency: str
    swift_code: str
    status: TransactionStatus
    created_at: datetime | None = None
