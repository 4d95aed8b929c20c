"""SQLAlchemy models exposed for metadata creation and imports."""
from .customer import Customer
from .employee import Employee, EmployeeRole
from .transaction import Transaction, TransactionStatus

__all__ = ["Customer", "Employee", "EmployeeRole", "Transaction", "TransactionStatus"]
