"""Tests for the role gate."""
import pytest

from app.core.dependencies import RoleGuard, require_role
from app.core.errors import InsufficientRole, RoleNotFound
from app.models.employee import EmployeeRole
from app.schemas.auth import EmployeeIdentity


def identity(role):
    return EmployeeIdentity(employee_id="EMP123456", role=role)


class TestRoleGuard:
    def test_agent_rejected_by_manager_gate(self):
        guard = require_role(EmployeeRole.MANAGER, EmployeeRole.SUPER_ADMIN)
        with pytest.raises(InsufficientRole) as exc_info:
            guard.authorize(identity(EmployeeRole.AGENT))
        assert exc_info.value.message == "Access denied: Insufficient privileges"
        assert "MANAGER" not in exc_info.value.message

    def test_agent_passes_agent_gate(self):
        guard = require_role(EmployeeRole.AGENT)
        principal = identity(EmployeeRole.AGENT)
        assert guard.authorize(principal) is principal

    def test_missing_role_rejected(self):
        with pytest.raises(RoleNotFound) as exc_info:
            require_role(EmployeeRole.AGENT).authorize(identity(None))
        assert exc_info.value.message == "Access denied: Role not found"

    @pytest.mark.parametrize("role", list(EmployeeRole))
    def test_super_admin_gate_admits_only_super_admin(self, role):
        guard = RoleGuard([EmployeeRole.SUPER_ADMIN])
        if role is EmployeeRole.SUPER_ADMIN:
            assert guard.authorize(identity(role)).role is role
        else:
            with pytest.raises(InsufficientRole):
                guard.authorize(identity(role))

    async def test_guard_is_awaitable_dependency(self):
        guard = require_role(EmployeeRole.MANAGER)
        principal = identity(EmployeeRole.MANAGER)
        assert await guard(principal) is principal
