#!/usr/bin/env python3
"""
Check that the harvester's runtime dependencies are usable.

Besides the third-party packages this verifies that the bundled SQLite
library understands ``INSERT ... ON CONFLICT DO UPDATE`` (SQLite 3.24+),
which every write in german_verbs.verb_db relies on.
"""

import sqlite3
import sys
from importlib import import_module

REQUIRED_PACKAGES = {
    "requests": "requests",
    "beautifulsoup4": "bs4",
    "tenacity": "tenacity",
    "pandas": "pandas",
}

OPTIONAL_PACKAGES = {
    "pytest": "pytest",
    "black": "black",
    "flake8": "flake8",
    "mypy": "mypy",
    "isort": "isort",
}

MIN_SQLITE = (3, 24, 0)


def check_package(label: str, import_name: str) -> bool:
    """Try importing a package and print a short status line."""
    try:
        module = import_module(import_name)
    except ImportError:
        print(f"[missing] {label}")
        return False

    version = getattr(module, "__version__", None)
    print(f"[ok]      {label}" + (f" (version {version})" if version else ""))
    return True


def check_python_version() -> bool:
    """Require Python >= 3.9."""
    v = sys.version_info
    print(f"Python: {v.major}.{v.minor}.{v.micro}")
    if v < (3, 9):
        print("Python 3.9 or newer is required.")
        return False
    return True


def check_sqlite() -> bool:
    """Require an SQLite library with upsert support."""
    print(f"SQLite: {sqlite3.sqlite_version}")
    if sqlite3.sqlite_version_info < MIN_SQLITE:
        print("SQLite 3.24 or newer is required for upserts.")
        return False
    return True


def main() -> int:
    print("German verbs harvester - dependency check")
    print("-" * 50)

    runtime_ok = check_python_version() and check_sqlite()
    print()

    print("Required packages:")
    required_ok = all(
        [check_package(pkg, name) for pkg, name in REQUIRED_PACKAGES.items()]
    )

    print("\nOptional (dev) packages:")
    optional_count = sum(
        check_package(pkg, name) for pkg, name in OPTIONAL_PACKAGES.items()
    )

    print("\n" + "-" * 50)
    if runtime_ok and required_ok:
        print("All required dependencies are available.")
        print(f"Optional dev tools: {optional_count}/{len(OPTIONAL_PACKAGES)}")
        print("\nStart a harvest with:")
        print("  python scripts/german_verbs_cli.py scrape")
        return 0

    print("Some required dependencies are missing.")
    print("Install them with:")
    print("  pip install .")
    print("Or for editable install with dev tools:")
    print("  pip install -e .[dev]")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
