"""
Test fixtures for deterministic testing.

This module provides:
- fixture_db: temp SQLite databases with the production schema
- seed_skyline_scenario / seed_untagged_scenario: pinned dashboard scenarios
"""

from .fixture_db import (
    NOW,
    add_application,
    add_candidate,
    add_thread,
    add_workspace,
    ago,
    ahead,
    create_fixture_db,
    fixture_conn,
    get_fixture_db_path,
    guard_no_live_db,
    insert_row,
    seed_skyline_scenario,
    seed_untagged_scenario,
)

__all__ = [
    "NOW",
    "add_application",
    "add_candidate",
    "add_thread",
    "add_workspace",
    "ago",
    "ahead",
    "create_fixture_db",
    "fixture_conn",
    "get_fixture_db_path",
    "guard_no_live_db",
    "insert_row",
    "seed_skyline_scenario",
    "seed_untagged_scenario",
]
