#!/usr/bin/env python3
"""
PrizeWheel Unified CLI
Consolidated entry point for PrizeWheel operations
"""

import asyncio
import sys
import os
import logging
from uuid import UUID

from prizewheel.core.config import settings
from prizewheel.db.session import AsyncSessionLocal, async_engine
from prizewheel.models.enums import AppRole
from prizewheel.repos.prize_repo import validate_catalog
from prizewheel.repos.user_role_repo import grant_role
from prizewheel.scripts.seed_prizes import run as seed_prizes

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class PrizeWheelCLI:
    """Database-backed maintenance commands"""

    async def check_catalog(self) -> bool:
        """Print catalog problems; True when the catalog is drawable"""
        async with AsyncSessionLocal() as session:
            problems = await validate_catalog(session)

        if not problems:
            print("✅ Catalog OK")
            return True

        print(f"❌ {len(problems)} catalog problem(s):")
        for problem in problems:
            print(f"  - {problem}")
        return False

    async def grant_admin(self, raw_user_id: str) -> bool:
        """Give a user the admin role"""
        try:
            user_id = UUID(raw_user_id)
        except ValueError:
            print(f"Invalid user id: {raw_user_id}")
            return False

        async with AsyncSessionLocal() as session:
            await grant_role(session, user_id, AppRole.ADMIN)

        print(f"✅ {user_id} is now an admin")
        return True

    async def close(self):
        await async_engine.dispose()


def print_help():
    """Print help information"""
    print("""
PrizeWheel Unified CLI

Usage:
  prizewheel <command> [options]

Commands:
  app start            Start FastAPI application
  app dev              Start FastAPI in development mode
  app worker           Start the Celery delivery worker

  db upgrade           Upgrade database
  db downgrade         Downgrade database

  catalog check        Validate the prize catalog
  catalog seed         Create a starter catalog on an empty database

  admin grant <id>     Grant the admin role to a user

  help                 Show this help message

Examples:
  prizewheel app start
  prizewheel db upgrade
  prizewheel admin grant 3f2b7c1e-0000-4000-8000-000000000000
""")


async def run(argv) -> bool:
    """Dispatch one CLI command"""
    if len(argv) < 2:
        print_help()
        return False

    command = argv[1].lower()
    subcommand = argv[2].lower() if len(argv) > 2 else None
    cli = PrizeWheelCLI()

    if command == "app":
        if subcommand == "start":
            logger.info("🚀 Starting FastAPI application...")
            os.system("uvicorn prizewheel.main:app --host 0.0.0.0 --port 8000")
            return True
        elif subcommand == "dev":
            logger.info("🚀 Starting FastAPI in development mode...")
            os.system("uvicorn prizewheel.main:app --host 0.0.0.0 --port 8000 --reload")
            return True
        elif subcommand == "worker":
            logger.info("📬 Starting delivery worker...")
            os.system("celery -A prizewheel.celery_app worker -Q delivery --loglevel=info")
            return True
        print("App subcommand required. Use: start, dev, worker")
        return False

    elif command == "db":
        if subcommand == "upgrade":
            logger.info("⬆️ Upgrading database...")
            return os.system("alembic upgrade head") == 0
        elif subcommand == "downgrade":
            logger.info("⬇️ Downgrading database...")
            return os.system("alembic downgrade -1") == 0
        print("Database subcommand required. Use: upgrade, downgrade")
        return False

    elif command == "catalog":
        if subcommand not in ("check", "seed"):
            print("Catalog subcommand required. Use: check, seed")
            return False
        try:
            if subcommand == "seed":
                await seed_prizes()
                return True
            return await cli.check_catalog()
        finally:
            await cli.close()

    elif command == "admin":
        if subcommand != "grant" or len(argv) < 4:
            print("Usage: admin grant <user_id>")
            return False
        try:
            return await cli.grant_admin(argv[3])
        finally:
            await cli.close()

    elif command == "help":
        print_help()
        return True

    print(f"Unknown command: {command}")
    print_help()
    return False


def main():
    success = asyncio.run(run(sys.argv))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
