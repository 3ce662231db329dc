#!/usr/bin/env python3
"""
scripts/cli.py - Unified CLI entry point for the E2E suite.

Usage:
    python scripts/cli.py <command> [options]

Commands:
    setup   - Install dependencies and the Playwright browser
    test    - Run tests (extra args are passed to pytest)
    clean   - Reset the test database
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent.absolute()
E2E_DIR = REPO_ROOT / "tests" / "e2e"
SCRIPTS_TESTS_DIR = REPO_ROOT / "scripts" / "tests"


def run(cmd: list[str], cwd: Path = REPO_ROOT, env: dict = None, check: bool = True):
    """Run a command with proper error handling."""
    full_env = os.environ.copy()
    if env:
        full_env.update(env)
    print(f"▶ {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=cwd, env=full_env)
    if check and result.returncode != 0:
        sys.exit(result.returncode)
    return result


def cmd_setup(args):
    """Install dependencies."""
    run(["uv", "sync", "--extra", "test"])
    run(["uv", "run", "playwright", "install", "chromium"])


def e2e_env(args) -> dict:
    """Environment overrides for the E2E run."""
    env = {}
    if args.base_url:
        env["APP_URL"] = args.base_url
    if args.headed:
        env["HEADLESS"] = "false"
    return env


def xdist_args(args) -> list[str]:
    """pytest-xdist options; each worker gets its own browser per test."""
    if not args.workers:
        return []
    # Every worker has its own session fixture; a magic link can be spent once
    if os.getenv("E2E_MAGIC_LINK_TOKEN") and not os.getenv("E2E_SESSION_TOKEN"):
        print("ERROR: --workers needs E2E_SESSION_TOKEN; a magic-link token is single-use")
        sys.exit(1)
    return ["-n", args.workers, "--dist", "worksteal"]


def cmd_test(args, extra_args: list[str]):
    """Run tests."""
    if args.scripts:
        run(["uv", "run", "pytest", str(SCRIPTS_TESTS_DIR)] + xdist_args(args) + extra_args)
        return

    run(
        ["uv", "run", "pytest", str(E2E_DIR)] + xdist_args(args) + extra_args,
        env=e2e_env(args),
    )


def cmd_clean(args):
    """Clean up resources."""
    if args.db:
        run([sys.executable, "scripts/clean_test_db.py", "--clean-db"])
    elif args.recreate:
        run([sys.executable, "scripts/clean_test_db.py", "--recreate"])
    else:
        print("Nothing to clean: pass --db or --recreate")


def main():
    parser = argparse.ArgumentParser(description="Unified CLI for the Devon Farm Sales E2E suite")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # setup
    subparsers.add_parser("setup", help="Install dependencies and browsers")

    # test - use parse_known_args for transparent pass-through
    # E2E tests run unless --scripts is given
    p_test = subparsers.add_parser("test", help="Run tests")
    p_test.add_argument("--scripts", action="store_true", help="Unit tests for scripts/")
    p_test.add_argument("--base-url", help="Application URL (sets APP_URL)")
    p_test.add_argument("--headed", action="store_true", help="Show the browser")
    p_test.add_argument("--workers", help="Parallel workers via pytest-xdist (e.g. 4 or auto)")

    # clean
    p_clean = subparsers.add_parser("clean", help="Clean up resources")
    clean_mode = p_clean.add_mutually_exclusive_group()
    clean_mode.add_argument("--db", action="store_true", help="Truncate test database tables")
    clean_mode.add_argument("--recreate", action="store_true", help="Drop and recreate the (empty) test database")

    # Use parse_known_args for test command to allow pass-through of pytest args
    args, extra = parser.parse_known_args()

    if args.command == "test":
        cmd_test(args, extra)
    else:
        commands = {
            "setup": cmd_setup,
            "clean": cmd_clean,
        }
        commands[args.command](args)


if __name__ == "__main__":
    main()
