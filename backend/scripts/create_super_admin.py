#!/usr/bin/env python3
"""Create the first SUPER_ADMIN employee if none exists yet."""
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging

from app.core.config import get_settings
from app.core.logger import setup_logging
from app.core.security import PasswordHasher
from app.db.base import Base
from app.db.session import engine, get_session
from app.models.employee import EmployeeRole
from app.schemas.employee import EmployeeCreate
from app.services.employees import create_employee, super_admin_exists

logger = logging.getLogger("create_super_admin")


async def bootstrap(username: str, password: str, first_name: str, last_name: str) -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        async with get_session() as session:
            if await super_admin_exists(session):
                logger.info("Super admin already exists")
                return 0
            data = EmployeeCreate(
                first_name=first_name,
                last_name=last_name,
                username=username,
                password=password,
                role=EmployeeRole.SUPER_ADMIN,
            )
            employee = await create_employee(session, data, PasswordHasher())
            await session.commit()
            logger.info("Super admin %s created with username %s", employee.employee_id, employee.username)
    finally:
        await engine.dispose()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--username", default="superadmin")
    parser.add_argument("--first-name", default="Super")
    parser.add_argument("--last-name", default="Admin")
    args = parser.parse_args()

    setup_logging(get_settings().log_level)
    password = getpass.getpass("Password for the super admin: ")
    return asyncio.run(bootstrap(args.username, password, args.first_name, args.last_name))


if __name__ == "__main__":
    raise SystemExit(main())
