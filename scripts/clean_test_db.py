#!/usr/bin/env python3
"""
scripts/clean_test_db.py

Reset the application's test database between E2E runs.

Usage:
    python scripts/clean_test_db.py --clean-db     # Truncate horses, farms, users
    python scripts/clean_test_db.py --recreate     # Drop and recreate the (empty) database

Environment Variables:
    TEST_DATABASE_URL   PostgreSQL/CockroachDB DSN (read from .env if present)
"""

import argparse
import os
import shutil
import subprocess
import sys
from pathlib import Path
from urllib.parse import urlparse, urlunparse

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).parent.parent.absolute()
DB_ENV_VAR = "TEST_DATABASE_URL"

# Children first so CASCADE has nothing left to chase
TABLES = ["horses", "farms", "users"]

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
RESET = "\033[0m"


def log(msg, color=RESET):
    print(f"{color}{msg}{RESET}")


def get_database_url():
    load_dotenv(REPO_ROOT / ".env")
    return os.getenv(DB_ENV_VAR) or None


def database_name(dsn):
    name = urlparse(dsn).path.lstrip("/")
    return name or None


def maintenance_dsn(dsn, maintenance_db="postgres"):
    """Point the DSN at a database we can connect to while dropping the target."""
    return urlunparse(urlparse(dsn)._replace(path=f"/{maintenance_db}"))


def run_sql(dsn, sql):
    subprocess.run(
        ["psql", dsn, "-v", "ON_ERROR_STOP=1", "-c", sql],
        capture_output=True,
        text=True,
        check=True,
    )


def truncate_all_tables(dsn):
    for table in TABLES:
        run_sql(dsn, f"TRUNCATE TABLE {table} CASCADE;")
        log(f"   ✓ {table}", GREEN)


def recreate_database(dsn):
    name = database_name(dsn)
    if not name:
        raise ValueError(f"{DB_ENV_VAR} does not name a database")

    admin_dsn = maintenance_dsn(dsn)
    run_sql(admin_dsn, f"DROP DATABASE IF EXISTS {name};")
    run_sql(admin_dsn, f"CREATE DATABASE {name};")
    log(f"   ✓ {name} recreated", GREEN)


def clean(clean_db=False, recreate=False):
    """Truncate tables or recreate the database; the two are alternatives.

    A recreated database is empty (no schema), so there is nothing to
    truncate afterwards.
    """
    if clean_db and recreate:
        log("❌ --clean-db and --recreate are mutually exclusive", RED)
        return 1

    if not clean_db and not recreate:
        log("No operation specified", YELLOW)
        return 0

    dsn = get_database_url()
    if not dsn:
        log(f"❌ {DB_ENV_VAR} is not set", RED)
        return 1

    if not shutil.which("psql"):
        log("❌ psql not found in PATH", RED)
        return 1

    try:
        if recreate:
            log("🧹 Recreating test database...", YELLOW)
            recreate_database(dsn)
        else:
            log("🧹 Truncating test tables...", YELLOW)
            truncate_all_tables(dsn)
    except subprocess.CalledProcessError as e:
        log(f"❌ Failed to clean database: {e.stderr or e}", RED)
        return 1
    except ValueError as e:
        log(f"❌ {e}", RED)
        return 1

    log("✅ database cleaned", GREEN)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Reset the E2E test database")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--clean-db",
        action="store_true",
        help="Truncate all application tables",
    )
    mode.add_argument(
        "--recreate",
        action="store_true",
        help="Drop and recreate the database named in TEST_DATABASE_URL "
        "(leaves it empty; run the app's migrations afterwards)",
    )
    args = parser.parse_args()

    return clean(clean_db=args.clean_db, recreate=args.recreate)


if __name__ == "__main__":
    sys.exit(main())
