"""Reusable dependencies for FastAPI routes.

The authentication gates verify the bearer token and attach the resolved
principal to ``request.state.principal``; ``require_role`` composes after the
employee gate and decides on the attached role alone.
"""
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InsufficientRole, InvalidTokenError, PrincipalNotFound, RateLimited, RoleNotFound
from app.core.rate_limit import BruteForceLimiter
from app.core.security import AccountNumberCipher, PasswordHasher, TokenService, extract_bearer_token
from app.db.session import get_session
from app.models.employee import EmployeeRole
from app.schemas.auth import CustomerIdentity, EmployeeIdentity, PrincipalKind, TokenClaims
from app.services.employees import get_employee_by_code

logger = logging.getLogger(__name__)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_session() as session:
        yield session


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_cipher(request: Request) -> AccountNumberCipher:
    return request.app.state.cipher


def get_login_limiter(request: Request) -> BruteForceLimiter:
    return request.app.state.login_limiter


def _verify_kind(tokens: TokenService, authorization: str | None, kind: PrincipalKind) -> TokenClaims:
    token = extract_bearer_token(authorization)
    claims = tokens.verify(token)
    if claims.principal_kind is not kind:
        logger.debug("Rejected %s token on a %s route", claims.principal_kind.value, kind.value)
        raise InvalidTokenError()
    return claims


async def get_current_customer(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> CustomerIdentity:
    # Customer claims are trusted as issued; no store lookup per request.
    claims = _verify_kind(tokens, authorization, PrincipalKind.CUSTOMER)
    identity = CustomerIdentity(user_id=claims.principal_id, username=claims.username)
    request.state.principal = identity
    return identity


async def get_current_employee(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    session: AsyncSession = Depends(get_db),
) -> EmployeeIdentity:
    claims = _verify_kind(tokens, authorization, PrincipalKind.EMPLOYEE)
    # Re-resolve so role changes and removals apply before the token expires.
    employee = await get_employee_by_code(session, claims.principal_id)
    if employee is None:
        raise PrincipalNotFound()
    identity = EmployeeIdentity(employee_id=employee.employee_id, role=employee.role)
    request.state.principal = identity
    return identity


class RoleGuard:
    """Allow an authenticated employee through only with a permitted role."""

    def __init__(self, allowed_roles: Iterable[EmployeeRole]) -> None:
        self.allowed_roles = frozenset(allowed_roles)

    def authorize(self, employee: EmployeeIdentity) -> EmployeeIdentity:
        if employee.role is None:
            raise RoleNotFound(detail="No role attached to request")
        if employee.role not in self.allowed_roles:
            logger.info("Access denied for %s with role %s", employee.employee_id, employee.role.value)
            raise InsufficientRole(detail=f"Role {employee.role.value} is not permitted for this route")
        return employee

    async def __call__(self, employee: EmployeeIdentity = Depends(get_current_employee)) -> EmployeeIdentity:
        return self.authorize(employee)


def require_role(*allowed_roles: EmployeeRole) -> RoleGuard:
    return RoleGuard(allowed_roles)


@dataclass
class LoginAttempt:
    """Handle given to login routes to report the outcome to the limiter."""

    limiter: BruteForceLimiter
    key: str

    def failed(self) -> None:
        self.limiter.record_failure(self.key)

    def succeeded(self) -> None:
        self.limiter.record_success(self.key)


class LoginThrottle:
    """Short-circuit blocked clients before any credential check runs."""

    def __init__(self, scope: str) -> None:
        self.scope = scope

    def __call__(self, request: Request, limiter: BruteForceLimiter = Depends(get_login_limiter)) -> LoginAttempt:
        client = request.client.host if request.client else "unknown"
        key = f"{self.scope}:{client}"
        decision = limiter.check(key)
        if not decision.allowed:
            logger.warning("Login blocked for %s", key)
            raise RateLimited(retry_after=decision.retry_after)
        return LoginAttempt(limiter, key)


customer_login_throttle = LoginThrottle("customer-login")
employee_login_throttle = LoginThrottle("employee-login")
