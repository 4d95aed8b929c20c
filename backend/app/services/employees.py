"""Employee store, creation and authentication."""
from __future__ import annotations

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationFailed, Conflict, StorageError
from app.core.security import PasswordHasher
from app.models.employee import Employee, EmployeeRole
from app.schemas.employee import EmployeeCreate

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 10


def generate_employee_id() -> str:
    return f"EMP{100000 + secrets.randbelow(900000)}"


async def _fetch_one(session: AsyncSession, statement) -> Employee | None:
    try:
        result = await session.execute(statement)
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    return result.scalar_one_or_none()


async def get_employee_by_code(session: AsyncSession, employee_id: str) -> Employee | None:
    return await _fetch_one(session, select(Employee).where(Employee.employee_id == employee_id))


async def get_employee_by_username(session: AsyncSession, username: str) -> Employee | None:
    return await _fetch_one(session, select(Employee).where(Employee.username == username))


async def super_admin_exists(session: AsyncSession) -> bool:
    statement = select(Employee.id).where(Employee.role == EmployeeRole.SUPER_ADMIN).limit(1)
    try:
        result = await session.execute(statement)
    except SQLAlchemyError as exc:
        raise StorageError() from exc
    return result.first() is not None


async def save_employee(session: AsyncSession, employee: Employee) -> Employee:
    session.add(employee)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Employee already exists") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StorageError() from exc
    return employee


async def create_employee(session: AsyncSession, data: EmployeeCreate, hasher: PasswordHasher) -> Employee:
    if await get_employee_by_username(session, data.username):
        raise Conflict("Username already taken")

    for _ in range(_MAX_ID_ATTEMPTS):
        employee_id = generate_employee_id()
        if await get_employee_by_code(session, employee_id) is None:
            break
    else:
        raise StorageError("Could not allocate an employee ID")

    employee = Employee(
        employee_id=employee_id,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        username=data.username,
        password_hash=await hasher.hash(data.password),
        role=data.role,
    )
    await save_employee(session, employee)
    logger.info("Created employee %s with role %s", employee.employee_id, employee.role.value)
    return employee


async def authenticate_employee(
    session: AsyncSession,
    username: str,
    password: str,
    hasher: PasswordHasher,
) -> Employee:
    employee = await get_employee_by_username(session, username)
    if employee is None or not await hasher.compare(password, employee.password_hash):
        raise AuthenticationFailed("Invalid login credentials")
    return employee
