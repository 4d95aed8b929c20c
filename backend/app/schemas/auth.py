"""Authentication-related schemas: token claims, principals and logins."""
from __future__ import annotations

import enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.employee import EmployeeRole
from app.schemas.common import CamelModel


class PrincipalKind(str, enum.Enum):
    CUSTOMER = "customer"
    EMPLOYEE = "employee"


class TokenClaims(BaseModel):
    """Payload carried inside a signed bearer token."""

    model_config = ConfigDict(populate_by_name=True)

    principal_id: str = Field(..., alias="principalId", min_length=1)
    principal_kind: PrincipalKind = Field(..., alias="principalKind")
    role: EmployeeRole | None = None
    username: str | None = None
    issued_at: int | None = Field(default=None, alias="iat")
    expires_at: int = Field(..., alias="exp")


class CustomerIdentity(BaseModel):
    """Authenticated customer, taken from token claims as issued."""

    principal_kind: Literal[PrincipalKind.CUSTOMER] = PrincipalKind.CUSTOMER
    user_id: str
    username: str | None = None


class EmployeeIdentity(BaseModel):
    """Authenticated employee, re-resolved from the store on every request."""

    principal_kind: Literal[PrincipalKind.EMPLOYEE] = PrincipalKind.EMPLOYEE
    employee_id: str
    role: EmployeeRole | None = None


class CustomerLoginRequest(BaseModel):
    identifier: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("identifier", "username"),
    )
    password: str = Field(..., min_length=1, max_length=128)


class EmployeeLoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class CustomerLoginResponse(CamelModel):
    message: str = "Authentication successful"
    token: str
    user_id: str
    username: str
    account_number: str
    first_name: str


class SignupResponse(CamelModel):
    message: str = "User registered successfully"
    token: str
    user_id: str
