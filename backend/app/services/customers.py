"""Customer store and authentication."""
from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationFailed, Conflict, StorageError, ValidationFailed
from app.core.security import AccountNumberCipher, PasswordHasher
from app.models.customer import Customer
from app.schemas.customer import CustomerCreate, CustomerRead

logger = logging.getLogger(__name__)


async def get_customer_by_id(session: AsyncSession, customer_id: str) -> Customer | None:
    try:
        return await session.get(Customer, customer_id)
    except SQLAlchemyError as exc:
        raise StorageError() from exc


async def find_customer_by_identifier(
    session: AsyncSession,
    cipher: AccountNumberCipher,
    identifier: str,
) -> Customer | None:
    """Resolve a login identifier: username, then email, then account number."""
    value = identifier.strip()
    conditions = [Customer.username == value, func.lower(Customer.email) == value.lower()]
    if value.isdigit():
        conditions.append(Customer.account_number_index == cipher.blind_index(value))
    try:
        result = await session.execute(select(Customer).where(or_(*conditions)))
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    matches = result.scalars().all()
    # Several rows can only match when one customer's username equals another's email
    for match in matches:
        if match.username == value:
            return match
    for match in matches:
        if match.email.lower() == value.lower():
            return match
    return matches[0] if matches else None


async def save_customer(session: AsyncSession, customer: Customer) -> Customer:
    session.add(customer)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Customer already exists") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StorageError() from exc
    return customer


async def register_customer(
    session: AsyncSession,
    data: CustomerCreate,
    hasher: PasswordHasher,
    cipher: AccountNumberCipher,
) -> Customer:
    if data.password != data.confirm_password:
        raise ValidationFailed("Passwords do not match")

    email = data.email.lower()
    account_index = cipher.blind_index(data.account_number)
    try:
        result = await session.execute(
            select(Customer.email, Customer.username, Customer.account_number_index).where(
                or_(
                    func.lower(Customer.email) == email,
                    Customer.username == data.username,
                    Customer.account_number_index == account_index,
                )
            )
        )
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    for existing_email, existing_username, existing_index in result.all():
        if existing_email.lower() == email:
            raise Conflict("User with this email already exists")
        if existing_username == data.username:
            raise Conflict("Username already taken")
        if existing_index == account_index:
            raise Conflict("Account number already registered")

    customer = Customer(
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        email=email,
        username=data.username,
        password_hash=await hasher.hash(data.password),
        account_number_encrypted=cipher.encrypt(data.account_number),
        account_number_index=account_index,
        balance=Decimal("0.00"),
    )
    await save_customer(session, customer)
    logger.info("Registered customer %s", customer.id)
    return customer


async def authenticate_customer(
    session: AsyncSession,
    identifier: str,
    password: str,
    hasher: PasswordHasher,
    cipher: AccountNumberCipher,
) -> Customer:
    customer = await find_customer_by_identifier(session, cipher, identifier)
    if customer is None:
        raise AuthenticationFailed("Authentication failed: User not found")
    if not await hasher.compare(password, customer.password_hash):
        raise AuthenticationFailed("Authentication failed: Incorrect password")
    return customer


async def change_customer_password(
    session: AsyncSession,
    customer: Customer,
    current_password: str,
    new_password: str,
    hasher: PasswordHasher,
) -> Customer:
    if not await hasher.compare(current_password, customer.password_hash):
        raise ValidationFailed("Current password is incorrect")
    customer.password_hash = await hasher.hash(new_password)
    return await save_customer(session, customer)


def to_customer_read(customer: Customer, cipher: AccountNumberCipher) -> CustomerRead:
    return CustomerRead(
        id=customer.id,
        first_name=customer.first_name,
        last_name=customer.last_name,
        email=customer.email,
        username=customer.username,
        account_number=cipher.decrypt(customer.account_number_encrypted),
        balance=customer.balance,
        created_at=customer.created_at,
    )
