"""Database model for international payments submitted by customers."""
from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, encrypted_field_length

RECIPIENT_ACCOUNT_MAX_DIGITS = 34


class TransactionStatus(str, enum.Enum):
    # Verify/reject outcomes are not modelled by this service.
    PENDING = "pending"


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), index=True)
    recipient_name: Mapped[str] = mapped_column(String(128), nullable=False)
    recipient_bank: Mapped[str] = mapped_column(String(128), nullable=False)
    recipient_account_encrypted: Mapped[str] = mapped_column(
        String(encrypted_field_length(RECIPIENT_ACCOUNT_MAX_DIGITS)), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    swift_code: Mapped[str] = mapped_column(String(11), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus, name="transaction_status", values_callable=lambda e: [m.value for m in e]),
        default=TransactionStatus.PENDING,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
