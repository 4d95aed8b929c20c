"""Payment submission and listing."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StorageError
from app.core.security import AccountNumberCipher
from app.models.transaction import Transaction, TransactionStatus
from app.schemas.transaction import TransactionCreate, TransactionRead


async def create_transaction(
    session: AsyncSession,
    customer_id: str,
    data: TransactionCreate,
    cipher: AccountNumberCipher,
) -> Transaction:
    transaction = Transaction(
        customer_id=customer_id,
        recipient_name=data.recipient_name.strip(),
        recipient_bank=data.recipient_bank.strip(),
        recipient_account_encrypted=cipher.encrypt(data.recipient_account_number),
        amount=data.amount,
        currency=data.currency,
        swift_code=data.swift_code,
        status=TransactionStatus.PENDING,
    )
    session.add(transaction)
    try:
        await session.flush()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StorageError() from exc
    return transaction


async def _list(session: AsyncSession, statement) -> list[Transaction]:
    try:
        result = await session.execute(statement.order_by(Transaction.created_at.desc(), Transaction.id.desc()))
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    return list(result.scalars().all())


async def list_customer_transactions(session: AsyncSession, customer_id: str) -> list[Transaction]:
    return await _list(session, select(Transaction).where(Transaction.customer_id == customer_id))


async def list_pending_transactions(session: AsyncSession) -> list[Transaction]:
    return await _list(session, select(Transaction).where(Transaction.status == TransactionStatus.PENDING))


def to_transaction_read(transaction: Transaction, cipher: AccountNumberCipher) -> TransactionRead:
    return TransactionRead(
        id=transaction.id,
        customer_id=transaction.customer_id,
        recipient_name=transaction.recipient_name,
        recipient_bank=transaction.recipient_bank,
        recipient_account_number=cipher.decrypt(transaction.recipient_account_encrypted),
        amount=transaction.amount,
        currency=transaction.currency,
        swift_code=transaction.swift_code,
        status=transaction.status,
        created_at=transaction.created_at,
    )
