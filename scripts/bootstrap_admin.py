#!/usr/bin/env python3
"""Create the first admin user, or promote an existing one.

Usage:
    python scripts/bootstrap_admin.py --email admin@example.com --password 'S3cure-pass'

    # Or using environment variables:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... python scripts/bootstrap_admin.py
"""

import argparse
import asyncio
import os
import sys

import _common


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Bootstrap an admin user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--email",
        default=os.environ.get("ADMIN_EMAIL"),
        help="Admin email (or set ADMIN_EMAIL env var)",
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("ADMIN_PASSWORD"),
        help="Admin password (or set ADMIN_PASSWORD env var)",
    )
    parser.add_argument("--name", default="", help="Display name")
    args = parser.parse_args()

    if not args.email or not args.password:
        print("Error: --email and --password (or ADMIN_EMAIL/ADMIN_PASSWORD) required", file=sys.stderr)
        return 1

    _common.setup_logging()
    from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
    from src.app.use_cases.auth import BootstrapAdminUseCase
    from src.depends import AsyncSessionLocal, init_db

    async def run():
        await init_db()
        async with AsyncSessionLocal() as session:
            use_case = BootstrapAdminUseCase(SqlAlchemyUnitOfWork(session))
            return await use_case.execute(args.email, args.password, args.name)

    try:
        return _common.finish(asyncio.run(run()))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
