"""Customer payment endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_cipher, get_current_customer, get_db
from app.core.security import AccountNumberCipher
from app.schemas.auth import CustomerIdentity
from app.schemas.transaction import TransactionCreate, TransactionRead
from app.services.transactions import create_transaction, list_customer_transactions, to_transaction_read

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionRead])
async def list_transactions(
    identity: CustomerIdentity = Depends(get_current_customer),
    session: AsyncSession = Depends(get_db),
    cipher: AccountNumberCipher = Depends(get_cipher),
) -> list[TransactionRead]:
    transactions = await list_customer_transactions(session, identity.user_id)
    return [to_transaction_read(item, cipher) for item in transactions]


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
async def submit_transaction(
    payload: TransactionCreate,
    identity: CustomerIdentity = Depends(get_current_customer),
    session: AsyncSession = Depends(get_db),
    cipher: AccountNumberCipher = Depends(get_cipher),
) -> TransactionRead:
    transaction = await create_transaction(session, identity.user_id, payload, cipher)
    await session.commit()
    return to_transaction_read(transaction, cipher)
