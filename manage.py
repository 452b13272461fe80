#!/usr/bin/env python3
"""
POS checkout engine management CLI.

Usage:
    python manage.py serve       Start the local admin API
    python manage.py migrate     Apply offline store migrations
    python manage.py sync        Probe the backend and replay queued sales once
    python manage.py status      Show connectivity-independent queue status
"""

import argparse
import asyncio
import sys
from pathlib import Path

from src.config import configure_logging, get_settings


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the admin API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload,
    )


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations, or show migration status."""
    from src.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        initialize_database,
    )

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists: {status['exists']}")
            print(f"Current version: {status['current_version'] or 'N/A'}")
            print(f"Applied migrations: {status['applied_migrations']}")
            print(f"Pending migrations: {status['pending_migrations']}")
            return 0

        results = await initialize_database(
            args.db_path,
            create_backup_before=not args.no_backup,
        )
        if not results:
            print("Database is up to date.")
        for result in results:
            label = "SUCCESS" if result.success else "FAILED"
            print(f"[{label}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
            if result.error:
                print(f"         Error: {result.error}")
        return 0 if all(r.success for r in results) else 1

    sys.exit(asyncio.run(run()))


def cmd_sync(args: argparse.Namespace) -> None:
    """Probe connectivity once, then drain the queue (and optionally refresh products)."""
    from src.application.services import get_connectivity_monitor, get_offline_queue
    from src.application.use_cases import RefreshProductCacheUseCase
    from src.core.exceptions import CatalogUnavailableError
    from src.core.services import DrainStatus
    from src.infrastructure.storage.sqlite import close_pool
    from src.infrastructure.storage.sqlite.migrations import run_migrations

    async def run() -> int:
        await run_migrations()
        try:
            status = await get_connectivity_monitor().probe()
            print(f"Backend online: {status.is_online} (slow: {status.is_slow_connection})")

            report = await get_offline_queue().force_sync()
            print(f"Sync {report.status.value}: {report.synced_count} synced, "
                  f"{len(report.rejected)} rejected, {report.remaining} remaining")
            if report.error:
                print(f"  Last error: {report.error}")

            if args.products and status.is_online:
                try:
                    result = await RefreshProductCacheUseCase().execute()
                    print(f"Product cache refreshed: {result.count} products")
                except CatalogUnavailableError as e:
                    print(f"Product cache not refreshed: {e.message}")
                    return 1
        finally:
            await close_pool()

        return 0 if report.status in (DrainStatus.COMPLETED, DrainStatus.OFFLINE) else 1

    sys.exit(asyncio.run(run()))


def cmd_status(args: argparse.Namespace) -> None:
    """Print queue counters and queued sales."""
    from src.application.services import get_offline_queue
    from src.infrastructure.storage.sqlite import close_pool
    from src.infrastructure.storage.sqlite.migrations import run_migrations

    async def run() -> None:
        await run_migrations(create_backup_before=False)
        try:
            queue = get_offline_queue()
            stats = await queue.stats()
            print(f"Pending: {stats.pending_count}")
            print(f"Failed: {stats.failed_count}")
            print(f"Quarantined: {stats.quarantined_count}")
            print(f"Last sync attempt: {stats.last_sync_attempt or 'never'}")
            print(f"Last successful sync: {stats.last_successful_sync or 'never'}")

            if args.verbose:
                for entry in await queue.entries():
                    print(
                        f"  {entry.local_id}  {entry.sync_state.value:<7}  "
                        f"{entry.sale.total:>12}  attempts={entry.attempts}  "
                        f"{entry.last_error or ''}"
                    )
        finally:
            await close_pool()

    asyncio.run(run())


def main() -> None:
    parser = argparse.ArgumentParser(
        description="POS checkout engine management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the admin API")
    p_serve.add_argument("--host", default=None, help="Bind host (default: API_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: API_PORT)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply database migrations")
    p_migrate.add_argument("--db-path", type=Path, default=None, help="Database path (default from settings)")
    p_migrate.add_argument("--status", action="store_true", help="Show migration status only")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrations")
    p_migrate.set_defaults(func=cmd_migrate)

    # sync
    p_sync = sub.add_parser("sync", help="Replay queued sales once")
    p_sync.add_argument("--products", action="store_true", help="Also refresh the offline product cache")
    p_sync.set_defaults(func=cmd_sync)

    # status
    p_status = sub.add_parser("status", help="Show offline queue status")
    p_status.add_argument("-v", "--verbose", action="store_true", help="List queued sales")
    p_status.set_defaults(func=cmd_status)

    args = parser.parse_args()
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
