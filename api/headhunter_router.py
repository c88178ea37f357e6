"""
Headhunter API Router - dashboard snapshot endpoint.

Read-only. The snapshot itself is cached by the service (45 s TTL), so this
router adds no caching of its own.

Usage in server.py:
    from api.headhunter_router import headhunter_router
    app.include_router(headhunter_router, prefix="/api/headhunter")
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Query

from api.response_models import DashboardResponse
from headhunter.errors import NotFoundError
from headhunter.numbers import to_iso
from headhunter.snapshot import HeadhunterSnapshotService

logger = logging.getLogger(__name__)

headhunter_router = APIRouter(tags=["Headhunter"])

# Singleton snapshot service
_service: HeadhunterSnapshotService | None = None


def get_service() -> HeadhunterSnapshotService:
    """Get or create the snapshot service instance."""
    global _service
    if _service is None:
        _service = HeadhunterSnapshotService()
    return _service


def _wrap_response(data: dict, computed_at: str, params: dict | None = None) -> dict:
    """Wrap response in standard envelope."""
    return {
        "status": "ok",
        "data": data,
        "computed_at": computed_at,
        "params": params or {},
    }


@headhunter_router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    workspace_id: int | None = Query(None, alias="workspaceId", description="Workspace id"),
    lookback_days: int | None = Query(
        None, alias="lookbackDays", description="Lookback window in days, clamped to 7-120"
    ),
    service: HeadhunterSnapshotService = Depends(get_service),
):
    """
    Dashboard snapshot for a workspace.

    Without workspaceId the most recently updated active agency or recruiter
    workspace is used. Returns 404 when no workspace can be resolved.
    """
    params = {"workspaceId": workspace_id, "lookbackDays": lookback_days}
    try:
        snapshot = service.get_dashboard_snapshot(
            workspace_id=workspace_id, lookback_days=lookback_days
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except (sqlite3.Error, ValueError) as e:
        logger.exception("dashboard snapshot failed")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return _wrap_response(snapshot.to_dict(), to_iso(snapshot.generated_at), params)
