"""
Test configuration - ensures repo root is in sys.path + determinism guards.

This allows tests to import headhunter.*, api.* and tests.fixtures.*.
Blocks access to the live database under the app home so every test runs
against a temp fixture DB.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import headhunter.*, api.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".headhunter" / "data" / "headhunter.db"

_FORBIDDEN_DB_PATTERNS = [
    str(HOME_DB_ABSOLUTE),
    ".headhunter/data/headhunter.db",
]


def _is_forbidden_path(path_str: str) -> bool:
    """Check if a path string matches any forbidden live DB pattern."""
    if not path_str:
        return False
    return any(pattern in path_str for pattern in _FORBIDDEN_DB_PATTERNS)


def _extract_path_from_uri(database: str) -> str:
    """Extract filesystem path from SQLite URI format (file:/path?mode=ro)."""
    if not database.startswith("file:"):
        return database
    path = database[5:]
    if "?" in path:
        path = path.split("?")[0]
    return path


_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    actual_path = _extract_path_from_uri(str(database))
    if actual_path != ":memory:" and _is_forbidden_path(actual_path):
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Tests must use fixture DBs from tests/fixtures/fixture_db.py.\n"
            "Use: from tests.fixtures import create_fixture_db"
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch, tmp_path):
    """Automatically guard all tests against live DB access."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    monkeypatch.setenv("HEADHUNTER_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("HEADHUNTER_DB", raising=False)


# =============================================================================
# FIXTURE DB
# =============================================================================


@pytest.fixture
def db_path(tmp_path):
    """Empty schema-initialised fixture DB."""
    from tests.fixtures.fixture_db import create_fixture_db

    path = tmp_path / "fixture.db"
    conn = create_fixture_db(path)
    conn.close()
    return path


@pytest.fixture
def repository(db_path):
    from headhunter.repositories import SnapshotRepository

    return SnapshotRepository(db_path)
