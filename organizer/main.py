"""
Command Line Entry Point - Schema setup and health checks

Usage:
    organizer init [--seed]   Create tables, enum types, indexes and triggers
    organizer seed            Load sample tasks into an empty table
    organizer check           Verify connection, schema and row count
    organizer drop --yes      Drop the schema and all data
"""

from sqlalchemy.engine import make_url
from typing import Optional
import argparse
import logging
import sys

from organizer.core.config import settings, validate_config
from organizer.database import (
    SessionLocal, check_db_connection, close_db_connections, drop_db, engine,
    get_pool_stats, init_db, table_exists,
)

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure application logging with timestamp and log level"""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def cmd_init(ns: argparse.Namespace) -> int:
    init_db()
    if ns.seed:
        return cmd_seed(ns)
    return 0


def cmd_seed(ns: argparse.Namespace) -> int:
    from organizer.seed import seed_sample_data

    with SessionLocal() as db:
        inserted = seed_sample_data(db)
    print(f"Inserted {inserted} sample tasks")
    return 0


def cmd_check(ns: argparse.Namespace) -> int:
    from organizer.api.tasks import count_tasks

    if not check_db_connection():
        print("Database connection failed.", file=sys.stderr)
        return 1
    if not table_exists("tasks"):
        print("Database tables don't exist. Run `organizer init` first.", file=sys.stderr)
        return 1

    with SessionLocal() as db:
        total = count_tasks(db)

    url = make_url(settings.DATABASE_URL)
    print(f"Tasks table contains {total} records")
    print("Connection Information:")
    print(f"  URL: {url.render_as_string(hide_password=True)}")
    print(f"  Pool: {get_pool_stats() or 'n/a'}")
    return 0


def cmd_drop(ns: argparse.Namespace) -> int:
    if not ns.yes:
        print("Refusing to drop the schema without --yes.", file=sys.stderr)
        return 1
    drop_db()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="organizer",
        description=f"{settings.APP_NAME} {settings.APP_VERSION}: task schema management.",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("init", help="Create the database schema.")
    s.add_argument("--seed", action="store_true", help="Also load sample tasks.")
    s.set_defaults(func=cmd_init)

    s = sub.add_parser("seed", help="Load sample tasks into an empty table.")
    s.set_defaults(func=cmd_seed)

    s = sub.add_parser("check", help="Verify connection, schema and row count.")
    s.set_defaults(func=cmd_check)

    s = sub.add_parser("drop", help="Drop the schema and all data.")
    s.add_argument("--yes", action="store_true", help="Confirm the drop.")
    s.set_defaults(func=cmd_drop)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run one command. Fail fast: invalid configuration exits before
    any connection is opened.
    """
    parser = build_parser()
    ns = parser.parse_args(argv)
    setup_logging()

    try:
        validate_config()
    except ValueError as e:
        logger.error(f"❌ Configuration validation failed: {e}")
        return 1

    logger.info(f"🚀 {settings.APP_NAME} ({settings.ENVIRONMENT}) using {engine.url.render_as_string(hide_password=True)}")
    try:
        return int(ns.func(ns))
    finally:
        close_db_connections()


if __name__ == "__main__":
    sys.exit(main())
