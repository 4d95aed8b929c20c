"""Shared fixtures: isolated settings, in-memory database and an HTTP client."""
from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  (registers tables on the metadata)
from app.core.config import Settings
from app.core.dependencies import get_db
from app.db.base import Base
from app.main import create_app
from app.models.employee import EmployeeRole
from app.schemas.employee import EmployeeCreate
from app.services.employees import create_employee

TEST_ENCRYPTION_KEY = "1f" * 32
EMPLOYEE_PASSWORD = "Str0ngPass!"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret="test-signing-secret",
        encryption_key=TEST_ENCRYPTION_KEY,
        login_max_failures=3,
        login_min_wait_seconds=60,
        login_max_wait_seconds=600,
    )


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
def application(settings, session_factory):
    application = create_app(settings)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
async def client(application):
    transport = ASGITransport(app=application, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def signup_payload() -> dict:
    return {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@mailbox.org",
        "username": "johndoe",
        "password": "Abc12345!",
        "confirmPassword": "Abc12345!",
        "accountNumber": "12345678",
    }


@pytest.fixture
async def registered_customer(client, signup_payload) -> dict:
    response = await client.post("/api/user/signup", json=signup_payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def make_employee(application, session_factory):
    """Factory inserting an employee and returning ``(employee, token)``."""

    async def _make(role: EmployeeRole = EmployeeRole.AGENT, username: str | None = None):
        data = EmployeeCreate(
            first_name="Ada",
            last_name="Lovelace",
            username=username or f"{role.value.lower()}_user",
            password=EMPLOYEE_PASSWORD,
            role=role,
        )
        async with session_factory() as session:
            employee = await create_employee(session, data, application.state.password_hasher)
            await session.commit()
        token = application.state.token_service.issue_employee(employee.employee_id, employee.role.value)
        return employee, token

    return _make


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
