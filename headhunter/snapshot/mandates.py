"""
Mandate Portfolio Builder - applications joined to their project mandates.

fillProbability = min(1, placements / (offers or 1)) as a percentage.
A mandate is active unless archived or closed; paused/on-hold mandates are
counted separately but still active.
"""

from collections.abc import Iterable
from datetime import datetime

from headhunter.numbers import average, days_between, round_to, to_iso
from headhunter.repositories.models import Application, Project

from .pipeline import StageBucket, bucket_for_status, group_by_target, is_terminal

INACTIVE_MANDATE_STATUSES = frozenset({"archived", "closed"})
PAUSED_MANDATE_STATUSES = frozenset({"paused", "on_hold"})


def _last_activity(applications: Iterable[Application]) -> datetime | None:
    stamps = [
        stamp
        for app in applications
        for stamp in (app.updated_at, app.decision_at, app.submitted_at)
        if stamp is not None
    ]
    return max(stamps) if stamps else None


def fill_probability(placements: int, offers: int) -> float:
    return round_to(min(1.0, placements / (offers or 1)) * 100, 1)


def build_mandate(project: Project, applications: list[Application], now: datetime) -> dict:
    stage_counts = dict.fromkeys((b.value for b in StageBucket), 0)
    for app in applications:
        stage_counts[bucket_for_status(app.status).value] += 1

    last_activity = _last_activity(applications)
    aging = days_between(last_activity, now)
    return {
        "id": project.id,
        "title": project.title,
        "status": project.status,
        "clientName": project.client_name,
        "stageCounts": stage_counts,
        "openRoles": sum(1 for a in applications if not is_terminal(a.status)),
        "value": round_to(sum(a.rate_expectation or 0.0 for a in applications), 2),
        "lastActivityAt": to_iso(last_activity),
        "fillProbability": fill_probability(
            stage_counts[StageBucket.PLACEMENT.value], stage_counts[StageBucket.OFFERING.value]
        ),
        "agingDays": round_to(max(aging, 0.0), 1) if aging is not None else 0.0,
    }


def build_mandate_portfolio(
    applications: Iterable[Application], projects: Iterable[Project], now: datetime
) -> dict:
    by_project = group_by_target(applications, "project")
    mandates = [
        build_mandate(project, by_project.get(project.id, []), now)
        for project in projects
        if project.id in by_project
    ]
    mandates.sort(key=lambda m: (m["value"], m["id"]), reverse=True)

    statuses = [(m["status"] or "").lower() for m in mandates]
    return {
        "totals": {
            "activeMandates": sum(1 for s in statuses if s not in INACTIVE_MANDATE_STATUSES),
            "pausedMandates": sum(1 for s in statuses if s in PAUSED_MANDATE_STATUSES),
            "pipelineValue": round_to(sum(m["value"] for m in mandates), 2),
            "averageAgingDays": average((m["agingDays"] for m in mandates), digits=1) or 0.0,
        },
        "mandates": mandates,
    }
