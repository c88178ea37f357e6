"""
Pydantic response models for the headhunter API.

These give FastAPI the type information it needs to generate accurate
OpenAPI schemas for the dashboard envelope instead of empty `schema: {}`.

Usage:
    from api.response_models import DashboardResponse

    @router.get("/dashboard", response_model=DashboardResponse)
    def dashboard(): ...
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Envelope ====
# Shape: {status, data, computed_at, params, error?, error_code?}


class EnvelopeResponse(BaseModel):
    """Standard endpoint envelope."""

    status: str = Field(description="ok or error")
    data: Any = Field(default=None, description="Response payload")
    computed_at: str = Field(description="ISO timestamp of computation")
    params: dict[str, Any] = Field(default_factory=dict, description="Echo of request params")
    error: str | None = Field(default=None, description="Error message if status=error")
    error_code: str | None = Field(default=None, description="Error code if status=error")


# ==== Dashboard snapshot ====


class SelectableWorkspace(BaseModel):
    """A workspace the dashboard can switch to."""

    id: int
    name: str
    slug: str | None = None
    type: str


class DashboardMeta(BaseModel):
    """Snapshot provenance."""

    generatedAt: str = Field(description="ISO timestamp the snapshot was computed")
    workspaceId: int
    lookbackDays: int = Field(ge=7, le=120)
    hasWorkspaceScopedData: bool
    fallbackReason: str | None = None
    selectableWorkspaces: list[SelectableWorkspace] = Field(default_factory=list)


class DashboardSnapshotModel(BaseModel):
    """Top-level snapshot sections; section bodies are documented in DESIGN.md."""

    workspaceSummary: dict[str, Any]
    pipelineSummary: dict[str, Any]
    pipelineExecution: dict[str, Any]
    candidateSpotlight: list[dict[str, Any]]
    mandatePortfolio: dict[str, Any]
    outreachPerformance: dict[str, Any]
    passOnNetwork: dict[str, Any]
    clientPartnerships: dict[str, Any]
    activityTimeline: list[dict[str, Any]]
    calendar: dict[str, Any]
    insights: dict[str, Any]
    calendarOrchestration: dict[str, Any]
    knowledgeBase: dict[str, Any]
    wellbeing: dict[str, Any]
    prospectIntelligence: dict[str, Any]
    meta: DashboardMeta


class DashboardResponse(EnvelopeResponse):
    """Dashboard snapshot envelope."""

    data: DashboardSnapshotModel | None = Field(default=None, description="Snapshot payload")


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or error")
    timestamp: str = Field(description="ISO timestamp")
