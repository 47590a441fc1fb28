"""Utility script to create or reset the configured Postgres database."""
from __future__ import annotations

import argparse
import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from audora.core.logging import configure_logging
from audora.core.settings import settings

logger = logging.getLogger(__name__)


def normalize_to_psycopg(uri: str) -> str:
    """Return a Postgres URI suitable for psycopg.connect().

    Surrounding quotes and whitespace are stripped and SQLAlchemy driver
    schemes (`postgresql+psycopg`, `postgresql+asyncpg`) collapse to
    plain `postgresql`.
    """
    uri = (uri or "").strip()
    if len(uri) >= 2 and uri[0] == uri[-1] and uri[0] in {"'", '"'}:
        uri = uri[1:-1]
    if not uri:
        raise ValueError("DATABASE_URL is empty")

    parts = urlsplit(uri)
    scheme = parts.scheme
    if scheme.startswith("postgresql+"):
        scheme = "postgresql"
    elif scheme == "postgres":
        scheme = "postgresql"

    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def _split_db_url(db_url: str) -> tuple[str, str]:
    """Return `(admin_url, target_db)` using the maintenance database."""
    parts = urlsplit(normalize_to_psycopg(db_url))
    if parts.scheme != "postgresql":
        raise ValueError(f"Not a PostgreSQL DATABASE_URL: {db_url!r}")

    target_db = parts.path.lstrip("/") or "postgres"
    if parts.netloc:
        admin_url = urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, ""))
    else:
        admin_url = "postgresql:///postgres"
    return admin_url, target_db


def ensure_database_exists(db_url: str, *, drop: bool = False) -> bool:
    """Create the target database if missing. Returns True when it was created.

    With `drop`, an existing database is dropped first.
    """
    admin_url, target_db = _split_db_url(db_url)
    logger.debug("admin_url=%r target_db=%r", admin_url, target_db)

    with psycopg.connect(admin_url, autocommit=True) as conn, conn.cursor() as cur:
        if drop:
            cur.execute(sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(target_db)))
            logger.info("Dropped database %s", target_db)

        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", target_db)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
        logger.info("Created database %s", target_db)
        return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ensure or recreate the configured database")
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the database before creating it again.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to the effective settings URL)",
    )
    args = parser.parse_args(argv)
    configure_logging()

    try:
        ensure_database_exists(args.url or settings.effective_database_url, drop=args.drop)
    except (ValueError, psycopg.Error) as exc:
        logger.error("ensure_db failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
