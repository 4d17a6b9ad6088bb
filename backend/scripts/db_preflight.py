"""Deployment preflight for the ledger database settings.

Usage:
    python scripts/db_preflight.py

Reads the same environment variables as ``stockledger.config.Settings`` and
exits non-zero when a required production control fails.
"""

from __future__ import annotations

import os
import sys


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _float_env(name: str, default: float) -> float | None:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return None


def collect_checks(environment: str) -> list[tuple[str, bool, str]]:
    database_url = os.getenv("DATABASE_URL", "sqlite:///./stockledger.db")
    auto_create_tables = _bool_env("AUTO_CREATE_TABLES", True)
    lock_timeout = _float_env("STOCK_LOCK_TIMEOUT_SECONDS", 5.0)
    critical_factor = _float_env("CRITICAL_STOCK_FACTOR", 1.0)

    checks = [
        ("ENVIRONMENT is explicitly set", bool(environment), f"ENVIRONMENT={environment or '<empty>'}"),
        (
            "STOCK_LOCK_TIMEOUT_SECONDS is a positive number",
            lock_timeout is not None and lock_timeout > 0,
            f"STOCK_LOCK_TIMEOUT_SECONDS={os.getenv('STOCK_LOCK_TIMEOUT_SECONDS', '5.0')}",
        ),
        (
            "CRITICAL_STOCK_FACTOR is a positive number",
            critical_factor is not None and critical_factor > 0,
            f"CRITICAL_STOCK_FACTOR={os.getenv('CRITICAL_STOCK_FACTOR', '1.0')}",
        ),
    ]

    if environment in {"production", "prod"}:
        checks.extend([
            (
                "DATABASE_URL supports row locks (not SQLite)",
                "sqlite" not in database_url.lower(),
                f"DATABASE_URL={database_url.split('@')[-1]}",
            ),
            (
                "AUTO_CREATE_TABLES is disabled",
                not auto_create_tables,
                f"AUTO_CREATE_TABLES={auto_create_tables}",
            ),
        ])
    return checks


def run() -> int:
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    checks = collect_checks(environment)

    print("StockLedger DB Preflight")
    print(f"- environment: {environment}")
    failed = False
    for title, ok, detail in checks:
        print(f"[{'PASS' if ok else 'FAIL'}] {title} ({detail})")
        failed = failed or not ok

    if failed:
        print("\nPreflight failed. Resolve failed checks before deployment.")
        return 1

    print("\nPreflight passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
