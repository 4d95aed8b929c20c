"""Database model for banking customers."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, encrypted_field_length

ACCOUNT_NUMBER_MAX_DIGITS = 11


def _new_customer_id() -> str:
    return uuid.uuid4().hex


class Customer(Base):
    """Customer with hashed password and an encrypted account number."""

    __tablename__ = "customers"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_customers_balance_non_negative"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_customer_id)
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    account_number_encrypted: Mapped[str] = mapped_column(
        String(encrypted_field_length(ACCOUNT_NUMBER_MAX_DIGITS)), nullable=False
    )
    # HMAC of the plaintext account number; ciphertexts are randomised and cannot be matched.
    account_number_index: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
