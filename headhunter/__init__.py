"""
Headhunter dashboard snapshot engine.

Reads workspace-scoped recruiting records through the repository layer and
produces one cached, derived dashboard snapshot per (workspace, lookback).

Usage:
    from headhunter import HeadhunterSnapshotService, SnapshotRepository

    service = HeadhunterSnapshotService(SnapshotRepository(db_path))
    snapshot = service.get_dashboard_snapshot(workspace_id=3, lookback_days=30)
"""

from .errors import NotFoundError
from .repositories import SnapshotRepository
from .snapshot import DashboardSnapshot, HeadhunterSnapshotService

__all__ = [
    "DashboardSnapshot",
    "HeadhunterSnapshotService",
    "NotFoundError",
    "SnapshotRepository",
]
