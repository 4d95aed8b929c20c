"""Employee login, management and review endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import (
    LoginAttempt,
    employee_login_throttle,
    get_cipher,
    get_current_employee,
    get_db,
    get_password_hasher,
    get_token_service,
    require_role,
)
from app.core.errors import AuthenticationFailed, PrincipalNotFound
from app.core.security import AccountNumberCipher, PasswordHasher, TokenService
from app.models.employee import EmployeeRole
from app.schemas.auth import EmployeeIdentity, EmployeeLoginRequest
from app.schemas.employee import EmployeeCreate, EmployeeCreatedResponse, EmployeeLoginResponse, EmployeeRead
from app.schemas.transaction import TransactionRead
from app.services.employees import authenticate_employee, create_employee, get_employee_by_code
from app.services.transactions import list_pending_transactions, to_transaction_read

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])

any_employee = require_role(EmployeeRole.AGENT, EmployeeRole.MANAGER, EmployeeRole.SUPER_ADMIN)
super_admin_only = require_role(EmployeeRole.SUPER_ADMIN)


@router.post("/login", response_model=EmployeeLoginResponse)
async def login(
    payload: EmployeeLoginRequest,
    attempt: LoginAttempt = Depends(employee_login_throttle),
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> EmployeeLoginResponse:
    try:
        employee = await authenticate_employee(session, payload.username, payload.password, hasher)
    except AuthenticationFailed:
        attempt.failed()
        logger.info("Employee login failed from %s", attempt.key)
        raise
    attempt.succeeded()

    token = tokens.issue_employee(employee.employee_id, employee.role.value)
    return EmployeeLoginResponse(token=token, employee=EmployeeRead.model_validate(employee))


@router.get("/me", response_model=EmployeeRead)
async def get_profile(
    identity: EmployeeIdentity = Depends(get_current_employee),
    session: AsyncSession = Depends(get_db),
) -> EmployeeRead:
    employee = await get_employee_by_code(session, identity.employee_id)
    if employee is None:
        raise PrincipalNotFound()
    return EmployeeRead.model_validate(employee)


@router.post("", response_model=EmployeeCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_employee(
    payload: EmployeeCreate,
    identity: EmployeeIdentity = Depends(super_admin_only),
    session: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> EmployeeCreatedResponse:
    employee = await create_employee(session, payload, hasher)
    await session.commit()
    logger.info("Employee %s created by %s", employee.employee_id, identity.employee_id)
    return EmployeeCreatedResponse(employee=EmployeeRead.model_validate(employee))


@router.get("/transactions/pending", response_model=list[TransactionRead])
async def pending_transactions(
    identity: EmployeeIdentity = Depends(any_employee),
    session: AsyncSession = Depends(get_db),
    cipher: AccountNumberCipher = Depends(get_cipher),
) -> list[TransactionRead]:
    transactions = await list_pending_transactions(session)
    return [to_transaction_read(item, cipher) for item in transactions]
