"""Route modules for the payments portal API."""
from . import customers, employees, transactions

__all__ = ["customers", "employees", "transactions"]
