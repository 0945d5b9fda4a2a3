"""Operator commands for Content Studio.

Usage::

    python -m src.cli worker          # drain the job queue until Ctrl-C
    python -m src.cli init-db         # create every table, then exit
    python -m src.cli create-user --email a@b.c --password ... [--admin]

Each command builds the same components as the web app from the current
environment, so the worker can run as its own process next to the API
(set ``WORKER_ENABLED=false`` on the API in that case).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

import structlog

from src.config.settings import Settings
from src.utils.errors import ContentStudioError
from src.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Content Studio operator commands.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    worker_parser = subparsers.add_parser("worker", help="Run the background job worker")
    worker_parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between polls when the queue is empty (overrides WORKER_POLL_INTERVAL_SECONDS)",
    )

    subparsers.add_parser("init-db", help="Create all database tables")

    user_parser = subparsers.add_parser("create-user", help="Create a user account")
    user_parser.add_argument("--email", required=True)
    user_parser.add_argument("--name", default="")
    user_parser.add_argument("--password", required=True)
    user_parser.add_argument("--admin", action="store_true", help="Grant the admin role")

    return parser


async def _prepare(app_settings: Settings) -> dict[str, Any]:
    # Deferred so ``--help`` does not import every provider SDK.
    from src.main import build_components, initialize_storage

    components = build_components(app_settings)
    await initialize_storage(components)
    return components


async def _handle_init_db(app_settings: Settings) -> int:
    await _prepare(app_settings)
    logger.info("database_initialized", path=app_settings.database_path)
    print(f"Initialized database at {app_settings.database_path}")
    return 0


async def _handle_worker(app_settings: Settings, poll_interval: float | None) -> int:
    if poll_interval is not None:
        app_settings = app_settings.model_copy(update={"worker_poll_interval_seconds": poll_interval})
    components = await _prepare(app_settings)
    sse = components["sse_manager"]
    await sse.initialize()
    worker = components["worker"]
    try:
        await worker.run()
    finally:
        await sse.disconnect()
        await components["article_provider"].close()
    return 0


async def _handle_create_user(args: argparse.Namespace, app_settings: Settings) -> int:
    from src.models.user import UserRole

    components = await _prepare(app_settings)
    role = UserRole.ADMIN if args.admin else UserRole.USER
    try:
        user = await components["auth_service"].signup(args.email, args.name, args.password, role=role)
    except ContentStudioError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    print(f"Created {user.role.value} {user.email} ({user.id})")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Exits with the command's status code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, json_output=(app_settings.app_env == "production"))

    if args.command == "init-db":
        exit_code = asyncio.run(_handle_init_db(app_settings))
    elif args.command == "worker":
        try:
            exit_code = asyncio.run(_handle_worker(app_settings, args.poll_interval))
        except KeyboardInterrupt:
            logger.info("worker_interrupted")
            exit_code = 0
    elif args.command == "create-user":
        exit_code = asyncio.run(_handle_create_user(args, app_settings))
    else:
        parser.print_help()
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
