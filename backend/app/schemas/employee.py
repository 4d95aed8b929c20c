"""Pydantic schemas for employee operations."""
from __future__ import annotations

from pydantic import ConfigDict, Field

from app.models.employee import EmployeeRole
from app.schemas.common import CamelModel
from app.schemas.customer import USERNAME_PATTERN


class EmployeeCreate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=64)
    last_name: str = Field(..., min_length=1, max_length=64)
    username: str = Field(..., min_length=3, max_length=64, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    role: EmployeeRole


class EmployeeRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    first_name: str
    last_name: str
    username: str
    role: EmployeeRole


class EmployeeLoginResponse(CamelModel):
    token: str
    employee: EmployeeRead


class EmployeeCreatedResponse(CamelModel):
    message: str = "Employee created successfully"
    employee: EmployeeRead
