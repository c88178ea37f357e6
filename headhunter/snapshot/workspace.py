"""
Workspace resolution, application scoping and the workspace summary card.
"""

import logging
from collections.abc import Mapping, Sequence

from headhunter import config
from headhunter.errors import NotFoundError
from headhunter.numbers import clamp, parse_int, to_iso
from headhunter.repositories.models import Application, Workspace, WorkspaceMember

logger = logging.getLogger(__name__)

FALLBACK_REASON = (
    "No applications are tagged to this workspace yet; showing network-wide pipeline data."
)
RESPONSIVE_OUTREACH_HOURS = 24
WELLBEING_CHAMPION_SCORE = 75


def clamp_lookback(value) -> int:
    """Coerce to int (default when not coercible) and clamp into the allowed window."""
    days = parse_int(value)
    if days is None:
        days = config.DEFAULT_LOOKBACK_DAYS
    return int(clamp(days, config.MIN_LOOKBACK_DAYS, config.MAX_LOOKBACK_DAYS))


def resolve_workspace(repository, workspace_id=None) -> Workspace:
    """
    Requested workspace, or the most recently updated active agency/recruiter
    workspace when none is requested.

    Raises:
        NotFoundError: no workspace matches, or no eligible default exists.
    """
    if workspace_id is None:
        workspace = repository.find_default_workspace()
        if workspace is None:
            raise NotFoundError("No active agency or recruiter workspace is available")
        return workspace

    resolved_id = parse_int(workspace_id)
    workspace = repository.get_workspace(resolved_id) if resolved_id is not None else None
    if workspace is None:
        raise NotFoundError(f"Workspace {workspace_id} not found")
    return workspace


def scope_applications(
    applications: Sequence[Application], workspace: Workspace
) -> tuple[list[Application], bool, str | None]:
    """
    Applications tagged to the workspace.

    Falls back to every loaded application when none are tagged. Returns
    (applications, has_workspace_scoped_data, fallback_reason).
    """
    scoped = [a for a in applications if a.scope.matches(workspace.id, workspace.slug)]
    if scoped:
        return scoped, True, None
    logger.info(
        "No workspace-scoped applications for workspace %s; using network-wide data",
        workspace.id,
    )
    return list(applications), False, FALLBACK_REASON


def workspace_health(gap_count: int, burnout_risk: str) -> str:
    if burnout_risk == "high" or gap_count >= 2:
        return "at_risk"
    if gap_count == 1 or burnout_risk == "medium":
        return "watch"
    return "healthy"


def build_badges(
    pipeline_summary: Mapping, outreach: Mapping, pass_on: Mapping, wellbeing: Mapping
) -> list[dict]:
    badges = []
    hires = pipeline_summary["totals"]["hires"]
    if hires:
        badges.append(
            {
                "id": "placement-streak",
                "label": "Placement streak",
                "description": f"{hires} placement(s) closed in the current pipeline.",
            }
        )
    response_hours = outreach.get("averageResponseHours")
    if response_hours is not None and response_hours <= RESPONSIVE_OUTREACH_HOURS:
        badges.append(
            {
                "id": "responsive-outreach",
                "label": "Responsive outreach",
                "description": f"Candidates hear back in {response_hours} hours on average.",
            }
        )
    if pass_on.get("totalCandidates"):
        badges.append(
            {
                "id": "pass-on-partner",
                "label": "Pass-on partner",
                "description": f"{pass_on['totalCandidates']} candidate(s) referred onward.",
            }
        )
    score = wellbeing.get("score")
    if score is not None and score >= WELLBEING_CHAMPION_SCORE:
        badges.append(
            {
                "id": "wellbeing-champion",
                "label": "Wellbeing champion",
                "description": f"Team wellbeing score of {score:g}.",
            }
        )
    return badges


def build_workspace_summary(
    workspace: Workspace,
    members: Sequence[WorkspaceMember],
    pipeline_summary: Mapping,
    insights: Mapping,
    outreach: Mapping,
    pass_on: Mapping,
    wellbeing: Mapping,
) -> dict:
    gap_count = len(insights["gapAnalysis"]["gaps"])
    burnout = wellbeing["burnoutRisk"]
    return {
        "id": workspace.id,
        "name": workspace.name,
        "slug": workspace.slug,
        "type": workspace.type,
        "timezone": workspace.timezone,
        "defaultCurrency": workspace.default_currency,
        "intakeEmail": workspace.intake_email,
        "isActive": workspace.is_active,
        "updatedAt": to_iso(workspace.updated_at),
        "members": {
            "active": sum(1 for m in members if m.status == "active"),
            "pending": sum(1 for m in members if m.status == "pending"),
            "total": len(members),
        },
        "health": {
            "status": workspace_health(gap_count, burnout),
            "gapCount": gap_count,
            "burnoutRisk": burnout,
        },
        "badges": build_badges(pipeline_summary, outreach, pass_on, wellbeing),
    }


def selectable_workspaces(workspaces: Sequence[Workspace]) -> list[dict]:
    return [{"id": w.id, "name": w.name, "slug": w.slug, "type": w.type} for w in workspaces]
