"""
DTO factories for builder tests.

Builders are pure functions over frozen DTOs, so most tests construct the
DTOs directly instead of going through the fixture DB.
"""

from datetime import timedelta

from headhunter.repositories.models import (
    Application,
    Candidate,
    ClientEngagement,
    PipelineItem,
    PipelineStage,
    Project,
    Workspace,
)

from .fixture_db import NOW


def make_workspace(workspace_id: int = 1, **kwargs) -> Workspace:
    values = {
        "id": workspace_id,
        "name": "Skyline Search",
        "slug": "skyline-search",
        "type": "agency",
        "timezone": "Europe/London",
        "default_currency": "USD",
        "intake_email": "talent@skyline.example",
        "is_active": True,
        "updated_at": NOW - timedelta(days=1),
    }
    values.update(kwargs)
    return Workspace(**values)


def make_candidate(candidate_id: int, first: str = "Cand", last: str | None = None, **kwargs):
    values = {
        "id": candidate_id,
        "first_name": first,
        "last_name": last or str(candidate_id),
        "email": None,
        "headline": "Engineer",
        "location": None,
        "availability_status": None,
        "timezone": None,
    }
    values.update(kwargs)
    return Candidate(**values)


def make_app(app_id: int, status: str = "submitted", applicant_id: int | None = None, **kwargs):
    values = {
        "id": app_id,
        "applicant_id": applicant_id if applicant_id is not None else app_id,
        "target_type": "project",
        "target_id": 1,
        "status": status,
        "submitted_at": NOW - timedelta(days=5),
        "decision_at": None,
        "updated_at": NOW - timedelta(days=1),
        "rate_expectation": None,
        "currency": "USD",
    }
    values.update(kwargs)
    return Application(**values)


def make_project(project_id: int, status: str = "active", title: str | None = None) -> Project:
    return Project(
        id=project_id,
        title=title or f"Mandate {project_id}",
        status=status,
        client_name="Acme Corp",
        budget_amount=None,
        currency="USD",
        updated_at=None,
    )


def make_stage(stage_id: int, name: str | None = None, position: int = 0, **kwargs):
    values = {
        "id": stage_id,
        "workspace_id": 1,
        "name": name or f"Stage {stage_id}",
        "stage_type": None,
        "position": position,
        "win_probability": None,
    }
    values.update(kwargs)
    return PipelineStage(**values)


def make_item(item_id: int, stage_id: int = 1, **kwargs) -> PipelineItem:
    values = {
        "id": item_id,
        "workspace_id": 1,
        "stage_id": stage_id,
        "candidate": make_candidate(100 + item_id, "Item", str(item_id)),
        "score": None,
        "status": "active",
        "stage_entered_at": NOW - timedelta(days=2),
        "next_step": None,
        "estimated_value": None,
        "currency": "USD",
        "updated_at": NOW - timedelta(days=1),
    }
    values.update(kwargs)
    return PipelineItem(**values)


def make_engagement(engagement_id: int = 1, **kwargs) -> ClientEngagement:
    values = {
        "id": engagement_id,
        "workspace_id": 1,
        "client_name": "Acme Corp",
        "contact_name": "Dana Cole",
        "contact_email": "hiring@acme.example",
        "contract_status": "active",
        "contract_value": None,
        "retainer_amount": None,
        "billing_cycle": None,
        "success_fee_percentage": None,
        "currency": "USD",
        "start_date": None,
        "renewal_date": None,
        "updated_at": None,
    }
    values.update(kwargs)
    return ClientEngagement(**values)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
