"""Customer signup, login and profile endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import (
    LoginAttempt,
    customer_login_throttle,
    get_cipher,
    get_current_customer,
    get_db,
    get_password_hasher,
    get_token_service,
)
from app.core.errors import AuthenticationFailed, PrincipalNotFound, ValidationFailed
from app.core.security import AccountNumberCipher, PasswordHasher, TokenService
from app.schemas.auth import CustomerIdentity, CustomerLoginRequest, CustomerLoginResponse, SignupResponse
from app.schemas.common import MessageResponse
from app.schemas.customer import CustomerCreate, CustomerPasswordUpdate, CustomerRead
from app.services.customers import (
    authenticate_customer,
    change_customer_password,
    get_customer_by_id,
    register_customer,
    to_customer_read,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["customers"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: CustomerCreate,
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    cipher: AccountNumberCipher = Depends(get_cipher),
    tokens: TokenService = Depends(get_token_service),
) -> SignupResponse:
    customer = await register_customer(session, payload, hasher, cipher)
    await session.commit()
    token = tokens.issue_customer(customer.id, customer.username)
    return SignupResponse(token=token, user_id=customer.id)


@router.post("/login", response_model=CustomerLoginResponse)
async def login(
    payload: CustomerLoginRequest,
    attempt: LoginAttempt = Depends(customer_login_throttle),
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    cipher: AccountNumberCipher = Depends(get_cipher),
    tokens: TokenService = Depends(get_token_service),
) -> CustomerLoginResponse:
    try:
        customer = await authenticate_customer(session, payload.identifier, payload.password, hasher, cipher)
    except AuthenticationFailed as exc:
        attempt.failed()
        logger.info("Customer login failed from %s: %s", attempt.key, exc.message)
        raise
    attempt.succeeded()

    token = tokens.issue_customer(customer.id, customer.username)
    return CustomerLoginResponse(
        token=token,
        user_id=customer.id,
        username=customer.username,
        account_number=cipher.decrypt(customer.account_number_encrypted),
        first_name=customer.first_name,
    )


@router.get("/me", response_model=CustomerRead)
async def get_profile(
    identity: CustomerIdentity = Depends(get_current_customer),
    session: AsyncSession = Depends(get_db),
    cipher: AccountNumberCipher = Depends(get_cipher),
) -> CustomerRead:
    customer = await get_customer_by_id(session, identity.user_id)
    if customer is None:
        raise PrincipalNotFound("User not found")
    return to_customer_read(customer, cipher)


@router.put("/password", response_model=MessageResponse)
async def change_password(
    payload: CustomerPasswordUpdate,
    identity: CustomerIdentity = Depends(get_current_customer),
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> MessageResponse:
    if payload.new_password != payload.confirm_password:
        raise ValidationFailed("Passwords do not match")
    customer = await get_customer_by_id(session, identity.user_id)
    if customer is None:
        raise PrincipalNotFound("User not found")
    await change_customer_password(session, customer, payload.current_password, payload.new_password, hasher)
    await session.commit()
    return MessageResponse(message="Password updated successfully")
