"""End-to-end tests for employee login, the employee gate and role-gated routes."""
import re

from sqlalchemy import delete, update

from app.core.dependencies import get_current_employee
from app.models.employee import Employee, EmployeeRole
from app.models.transaction import RECIPIENT_ACCOUNT_MAX_DIGITS, TransactionStatus
from app.schemas.auth import EmployeeIdentity
from conftest import EMPLOYEE_PASSWORD, bearer

NEW_EMPLOYEE = {
    "firstName": "Grace",
    "lastName": "Hopper",
    "username": "ghopper",
    "password": "C0mpiler!",
    "role": "AGENT",
}


class TestEmployeeLogin:
    async def test_login_returns_token_and_profile(self, client, make_employee, application):
        employee, _ = await make_employee(EmployeeRole.MANAGER)
        response = await client.post(
            "/api/employees/login",
            json={"username": employee.username, "password": EMPLOYEE_PASSWORD},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["employee"]["employeeId"] == employee.employee_id
        assert body["employee"]["role"] == "MANAGER"
        claims = application.state.token_service.verify(body["token"])
        assert claims.role is EmployeeRole.MANAGER
        assert claims.expires_at - claims.issued_at == 8 * 3600

    async def test_bad_credentials(self, client, make_employee):
        employee, _ = await make_employee()
        for username, password in ((employee.username, "wrong"), ("nobody", EMPLOYEE_PASSWORD)):
            response = await client.post("/api/employees/login", json={"username": username, "password": password})
            assert response.status_code == 401
            assert response.json() == {"message": "Invalid login credentials"}

    async def test_blocked_after_repeated_failures(self, client, make_employee):
        employee, _ = await make_employee()
        for _ in range(3):
            await client.post("/api/employees/login", json={"username": employee.username, "password": "wrong"})
        response = await client.post(
            "/api/employees/login",
            json={"username": employee.username, "password": EMPLOYEE_PASSWORD},
        )
        assert response.status_code == 429

    async def test_employee_codes_follow_pattern(self, make_employee):
        employee, _ = await make_employee()
        assert re.fullmatch(r"EMP\d{6}", employee.employee_id)


class TestEmployeeGate:
    async def test_profile(self, client, make_employee):
        employee, token = await make_employee(EmployeeRole.AGENT)
        response = await client.get("/api/employees/me", headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["employeeId"] == employee.employee_id

    async def test_removed_employee(self, client, make_employee, session_factory):
        employee, token = await make_employee()
        async with session_factory() as session:
            await session.execute(delete(Employee).where(Employee.id == employee.id))
            await session.commit()
        response = await client.get("/api/employees/me", headers=bearer(token))
        assert response.status_code == 401
        assert response.json() == {"message": "Employee not found"}

    async def test_customer_token_rejected(self, client, registered_customer):
        response = await client.get("/api/employees/me", headers=bearer(registered_customer["token"]))
        assert response.status_code == 403
        assert response.json() == {"message": "Invalid or expired token"}

    async def test_missing_header(self, client):
        response = await client.get("/api/employees/me")
        assert response.status_code == 401
        assert response.json() == {"message": "Authorization header required"}


class TestRoleGatedRoutes:
    async def test_super_admin_creates_employee(self, client, make_employee):
        _, token = await make_employee(EmployeeRole.SUPER_ADMIN)
        response = await client.post("/api/employees", json=NEW_EMPLOYEE, headers=bearer(token))
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Employee created successfully"
        assert body["employee"]["username"] == "ghopper"
        assert re.fullmatch(r"EMP\d{6}", body["employee"]["employeeId"])

    async def test_duplicate_username_conflicts(self, client, make_employee):
        _, token = await make_employee(EmployeeRole.SUPER_ADMIN)
        await client.post("/api/employees", json=NEW_EMPLOYEE, headers=bearer(token))
        response = await client.post("/api/employees", json=NEW_EMPLOYEE, headers=bearer(token))
        assert response.status_code == 409
        assert response.json() == {"message": "Username already taken"}

    async def test_manager_cannot_create_employee(self, client, make_employee):
        _, token = await make_employee(EmployeeRole.MANAGER)
        response = await client.post("/api/employees", json=NEW_EMPLOYEE, headers=bearer(token))
        assert response.status_code == 403
        assert response.json() == {"message": "Access denied: Insufficient privileges"}

    async def test_missing_role(self, client, application):
        async def employee_without_role():
            return EmployeeIdentity(employee_id="EMP123456", role=None)

        application.dependency_overrides[get_current_employee] = employee_without_role
        response = await client.post("/api/employees", json=NEW_EMPLOYEE, headers=bearer("ignored"))
        assert response.status_code == 403
        assert response.json() == {"message": "Access denied: Role not found"}

    async def test_role_change_applies_without_new_token(self, client, make_employee, session_factory):
        employee, token = await make_employee(EmployeeRole.SUPER_ADMIN)
        async with session_factory() as session:
            await session.execute(
                update(Employee).where(Employee.id == employee.id).values(role=EmployeeRole.AGENT)
            )
            await session.commit()
        response = await client.post("/api/employees", json=NEW_EMPLOYEE, headers=bearer(token))
        assert response.status_code == 403
        assert response.json() == {"message": "Access denied: Insufficient privileges"}

    async def test_agent_sees_pending_transactions(self, client, make_employee, registered_customer):
        payment = {
            "recipientName": "Acme GmbH",
            "recipientBank": "Deutsche Bank",
            "recipientAccountNumber": "0012345678",
            "amount": "250.00",
            "currency": "eur",
            "swiftCode": "deutdeff",
        }
        created = await client.post("/api/transactions", json=payment, headers=bearer(registered_customer["token"]))
        assert created.status_code == 201

        _, token = await make_employee(EmployeeRole.AGENT)
        response = await client.get("/api/employees/transactions/pending", headers=bearer(token))
        assert response.status_code == 200
        [transaction] = response.json()
        assert transaction["status"] == "pending"
        assert transaction["recipientAccountNumber"] == "0012345678"
        assert transaction["currency"] == "EUR"
        assert transaction["swiftCode"] == "DEUTDEFF"

    async def test_longest_recipient_account_survives_storage(self, client, make_employee, registered_customer):
        recipient = "9" * RECIPIENT_ACCOUNT_MAX_DIGITS
        payment = {
            "recipientName": "Banco Ejemplo",
            "recipientBank": "Banco Ejemplo SA",
            "recipientAccountNumber": recipient,
            "amount": "10.00",
            "currency": "USD",
            "swiftCode": "BEXAESMM",
        }
        created = await client.post("/api/transactions", json=payment, headers=bearer(registered_customer["token"]))
        assert created.status_code == 201

        _, token = await make_employee(EmployeeRole.AGENT)
        response = await client.get("/api/employees/transactions/pending", headers=bearer(token))
        [transaction] = response.json()
        assert transaction["recipientAccountNumber"] == recipient
        assert transaction["status"] == TransactionStatus.PENDING.value
        assert list(TransactionStatus) == [TransactionStatus.PENDING]
