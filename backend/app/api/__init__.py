"""API router aggregator."""
from fastapi import APIRouter

from app.api.routes import customers, employees, transactions

api_router = APIRouter(prefix="/api")
api_router.include_router(customers.router)
api_router.include_router(employees.router)
api_router.include_router(transactions.router)

__all__ = ["api_router"]
