import argparse
import asyncio
import json

from loguru import logger

from unihaven.config import get_settings
from unihaven.db.database import async_session_factory, init_db
from unihaven.notifications.email import EmailSender
from unihaven.scheduler.jobs import Reconciler

settings = get_settings()


def init_database():
    """Create the database schema."""
    asyncio.run(init_db())


def run_reconciliation():
    """Run one reconciliation pass outside the scheduler."""

    async def _run():
        await init_db()
        reconciler = Reconciler(async_session_factory, EmailSender(settings), settings)
        return await reconciler.run_pass()

    summary = asyncio.run(_run())
    logger.info(f"Result: {json.dumps(summary.to_dict())}")


def main():
    parser = argparse.ArgumentParser(description="UniHaven backend CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # reconcile command
    subparsers.add_parser("reconcile", help="Run one reconciliation pass now")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "reconcile":
        run_reconciliation()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "unihaven.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
