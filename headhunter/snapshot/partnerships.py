"""
Partnerships / Client Insights - sub-reports over client engagements.

Sections:
- management: contract and retainer terms
- analytics: submission -> interview -> offer -> placement ratios, taken
  from engagement performance metadata first, else summed from mandates
- calendars: engagement schedule events
- excellence: milestone health (at_risk > completed > on_track)
- portals: adoption = active users / invites
- mandatePerformance: diversity and quality averages
- commercialOperations: invoices, commissions, retainer renewals
- issueResolution: open / awaiting / resolved desk with playbook usage
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from headhunter.numbers import (
    average,
    days_between,
    hours_between,
    parse_int,
    percentage,
    round_to,
    to_iso,
)
from headhunter.repositories.models import ClientEngagement, IssueResolutionCase

logger = logging.getLogger(__name__)

ACTIVE_CONTRACT_STATUSES = frozenset({"active", "signed"})
RENEWAL_HORIZON = timedelta(days=60)
UPCOMING_EVENT_LIMIT = 10
RECENT_AUDIT_LIMIT = 3

FUNNEL_KEYS = ("submissions", "interviews", "offers", "placements")

PAID_INVOICE_STATUSES = frozenset({"paid"})
VOID_INVOICE_STATUSES = frozenset({"void", "cancelled", "draft"})
PAID_COMMISSION_STATUSES = frozenset({"paid"})

OPEN_CASE_STATUSES = frozenset({"open", "in_progress", "escalated"})
AWAITING_CASE_STATUSES = frozenset({"awaiting_client"})
RESOLVED_CASE_STATUSES = frozenset({"resolved", "closed"})


def _sum(values: Iterable[float | None]) -> float:
    return round_to(sum(v or 0.0 for v in values), 2)


# ==================================================================
# management
# ==================================================================


def build_management(engagements: Sequence[ClientEngagement], now: datetime) -> dict:
    statuses = Counter(e.contract_status for e in engagements)
    contracts = []
    for e in engagements:
        to_renewal = days_between(now, e.renewal_date)
        contracts.append(
            {
                "id": e.id,
                "clientName": e.client_name,
                "contractStatus": e.contract_status,
                "contractValue": e.contract_value,
                "retainerAmount": e.retainer_amount,
                "billingCycle": e.billing_cycle,
                "successFeePercentage": e.success_fee_percentage,
                "currency": e.currency,
                "startDate": to_iso(e.start_date),
                "renewalDate": to_iso(e.renewal_date),
                "daysToRenewal": round_to(to_renewal, 1),
            }
        )
    active = [e for e in engagements if e.contract_status in ACTIVE_CONTRACT_STATUSES]
    return {
        "contracts": contracts,
        "statusBreakdown": dict(sorted(statuses.items())),
        "totals": {
            "activeContracts": len(active),
            "contractValue": _sum(e.contract_value for e in engagements),
            "activeRetainerValue": _sum(e.retainer_amount for e in active),
        },
    }


# ==================================================================
# analytics
# ==================================================================


def engagement_funnel(engagement: ClientEngagement) -> tuple[dict[str, int], str]:
    """Funnel counts and their source: 'metadata' when performance metadata covers them."""
    recorded = {key: parse_int(engagement.performance.get(key)) for key in FUNNEL_KEYS}
    derived = _derived_funnel(engagement)
    if all(v is None for v in recorded.values()):
        return derived, "derived"
    funnel = {k: recorded[k] if recorded[k] is not None else derived[k] for k in FUNNEL_KEYS}
    return funnel, "metadata"


def _derived_funnel(engagement: ClientEngagement) -> dict[str, int]:
    return {key: sum(getattr(m, key) or 0 for m in engagement.mandates) for key in FUNNEL_KEYS}


def _ratios(funnel: dict[str, int]) -> dict[str, float]:
    return {
        "interviewRate": percentage(funnel["interviews"], funnel["submissions"]),
        "offerRate": percentage(funnel["offers"], funnel["interviews"]),
        "placementRate": percentage(funnel["placements"], funnel["offers"]),
    }


def build_analytics(engagements: Sequence[ClientEngagement]) -> dict:
    totals = dict.fromkeys(FUNNEL_KEYS, 0)
    clients = []
    for e in engagements:
        funnel, source = engagement_funnel(e)
        for key in FUNNEL_KEYS:
            totals[key] += funnel[key]
        clients.append(
            {
                "engagementId": e.id,
                "clientName": e.client_name,
                "source": source,
                **funnel,
                **_ratios(funnel),
            }
        )
    return {"totals": {**totals, **_ratios(totals)}, "clients": clients}


# ==================================================================
# calendars
# ==================================================================


def build_calendars(engagements: Sequence[ClientEngagement], now: datetime) -> dict:
    upcoming = []
    scopes: Counter[str] = Counter()
    hosts = set()
    for e in engagements:
        for event in e.schedule_events:
            scopes[event.scope or "general"] += 1
            if event.host_name:
                hosts.add(event.host_name)
            if event.starts_at is not None and event.starts_at >= now:
                upcoming.append((event.starts_at, event.id, e, event))
    upcoming.sort(key=lambda u: (u[0], u[1]))
    return {
        "upcoming": [
            {
                "id": event.id,
                "engagementId": e.id,
                "clientName": e.client_name,
                "title": event.title,
                "type": event.event_type,
                "scope": event.scope,
                "visibility": event.visibility,
                "startsAt": to_iso(event.starts_at),
                "endsAt": to_iso(event.ends_at),
                "host": event.host_name,
            }
            for _, _, e, event in upcoming[:UPCOMING_EVENT_LIMIT]
        ],
        "scopes": dict(sorted(scopes.items())),
        "hosts": len(hosts),
    }


# ==================================================================
# excellence
# ==================================================================


def milestone_health(statuses: Sequence[str]) -> str:
    if any(s == "at_risk" for s in statuses):
        return "at_risk"
    if statuses and all(s == "completed" for s in statuses):
        return "completed"
    return "on_track"


def build_excellence(engagements: Sequence[ClientEngagement], now: datetime) -> dict:
    dashboards = []
    for e in engagements:
        statuses = [m.status for m in e.milestones]
        open_milestones = sorted(
            (m for m in e.milestones if m.status != "completed" and m.due_at is not None),
            key=lambda m: m.due_at,
        )
        upcoming = next((m for m in open_milestones if m.due_at >= now), None)
        dashboards.append(
            {
                "engagementId": e.id,
                "clientName": e.client_name,
                "health": milestone_health(statuses),
                "milestones": {
                    "total": len(statuses),
                    "completed": statuses.count("completed"),
                    "atRisk": statuses.count("at_risk"),
                    "overdue": sum(1 for m in open_milestones if m.due_at < now),
                },
                "nextMilestone": (
                    {"title": upcoming.title, "dueAt": to_iso(upcoming.due_at)} if upcoming else None
                ),
            }
        )
    health = Counter(d["health"] for d in dashboards)
    return {
        "dashboards": dashboards,
        "healthCounts": {key: health.get(key, 0) for key in ("on_track", "at_risk", "completed")},
    }


# ==================================================================
# portals
# ==================================================================


def adoption_rate(active_users: int | None, invite_count: int | None) -> float:
    return percentage(active_users or 0, invite_count or 0)


def build_portals(engagements: Sequence[ClientEngagement]) -> dict:
    portals = []
    for e in engagements:
        for portal in e.portals:
            logs = sorted(
                (log for log in portal.audit_logs if log.occurred_at is not None),
                key=lambda log: log.occurred_at,
                reverse=True,
            )
            portals.append(
                {
                    "id": portal.id,
                    "engagementId": e.id,
                    "clientName": e.client_name,
                    "status": portal.status,
                    "inviteCount": portal.invite_count or 0,
                    "activeUsers": portal.active_users or 0,
                    "adoptionRate": adoption_rate(portal.active_users, portal.invite_count),
                    "lastActivityAt": to_iso(logs[0].occurred_at) if logs else None,
                    "recentAudit": [
                        {
                            "action": log.action,
                            "actor": log.actor_name,
                            "occurredAt": to_iso(log.occurred_at),
                        }
                        for log in logs[:RECENT_AUDIT_LIMIT]
                    ],
                }
            )
    return {
        "portals": portals,
        "averageAdoptionRate": average((p["adoptionRate"] for p in portals), digits=1),
        "activePortals": sum(1 for p in portals if p["status"] == "active"),
    }


# ==================================================================
# mandate performance
# ==================================================================


def build_mandate_performance(engagements: Sequence[ClientEngagement]) -> dict:
    mandates = [
        {
            "id": m.id,
            "engagementId": e.id,
            "clientName": e.client_name,
            "title": m.title,
            "status": m.status,
            "openings": m.openings or 0,
            "filled": m.filled_count or 0,
            "fillRate": percentage(m.filled_count or 0, m.openings or 0),
            "pipelineValue": m.pipeline_value,
            "diversityScore": m.diversity_score,
            "qualityScore": m.quality_score,
        }
        for e in engagements
        for m in e.mandates
    ]
    return {
        "mandates": mandates,
        "averageDiversityScore": average((m["diversityScore"] for m in mandates), digits=1),
        "averageQualityScore": average((m["qualityScore"] for m in mandates), digits=1),
        "totalOpenings": sum(m["openings"] for m in mandates),
        "totalFilled": sum(m["filled"] for m in mandates),
    }


# ==================================================================
# commercial operations
# ==================================================================


def build_commercial_operations(engagements: Sequence[ClientEngagement], now: datetime) -> dict:
    outstanding = overdue = paid = 0.0
    invoice_count = 0
    commissions_total = commissions_paid = 0.0
    partners = set()
    renewals = []

    for e in engagements:
        for invoice in e.invoices:
            invoice_count += 1
            amount = invoice.amount or 0.0
            if invoice.status in PAID_INVOICE_STATUSES:
                paid += amount
                continue
            if invoice.status in VOID_INVOICE_STATUSES:
                continue
            outstanding += amount
            past_due = invoice.due_at is not None and invoice.due_at < now
            if invoice.status == "overdue" or past_due:
                overdue += amount

        for split in e.commission_splits:
            commissions_total += split.amount or 0.0
            if split.status in PAID_COMMISSION_STATUSES:
                commissions_paid += split.amount or 0.0
            if split.partner_name:
                partners.add(split.partner_name)

        if e.renewal_date is not None and e.renewal_date >= now:
            renewals.append(
                {
                    "engagementId": e.id,
                    "clientName": e.client_name,
                    "renewalDate": to_iso(e.renewal_date),
                    "retainerAmount": e.retainer_amount,
                    "billingCycle": e.billing_cycle,
                    "daysUntil": round_to(days_between(now, e.renewal_date), 1),
                    "dueSoon": e.renewal_date - now <= RENEWAL_HORIZON,
                }
            )

    renewals.sort(key=lambda r: r["daysUntil"])
    return {
        "invoices": {
            "count": invoice_count,
            "outstanding": round_to(outstanding, 2),
            "overdue": round_to(overdue, 2),
            "paid": round_to(paid, 2),
        },
        "commissions": {
            "total": round_to(commissions_total, 2),
            "paid": round_to(commissions_paid, 2),
            "pending": round_to(commissions_total - commissions_paid, 2),
            "partners": len(partners),
        },
        "renewals": renewals,
    }


# ==================================================================
# issue resolution
# ==================================================================


def build_issue_resolution(cases: Sequence[IssueResolutionCase]) -> dict:
    resolution_hours = []
    playbooks: Counter[str] = Counter()
    for case in cases:
        if case.playbook:
            playbooks[case.playbook] += 1
        if case.status in RESOLVED_CASE_STATUSES:
            hours = hours_between(case.opened_at, case.resolved_at)
            if hours is not None and hours >= 0:
                resolution_hours.append(hours)
            elif case.resolved_at is not None:
                logger.debug("Skipping resolution time for case %s with bad timestamps", case.id)

    open_cases = [c for c in cases if c.status in OPEN_CASE_STATUSES]
    return {
        "open": len(open_cases),
        "awaitingClient": sum(1 for c in cases if c.status in AWAITING_CASE_STATUSES),
        "resolved": sum(1 for c in cases if c.status in RESOLVED_CASE_STATUSES),
        "averageResolutionHours": average(resolution_hours, digits=2),
        "playbookUsage": [
            {"playbook": name, "count": count} for name, count in playbooks.most_common()
        ],
        "openCases": [
            {
                "id": c.id,
                "title": c.title,
                "status": c.status,
                "severity": c.severity,
                "priority": c.priority,
                "openedAt": to_iso(c.opened_at),
                "events": len(c.events),
            }
            for c in open_cases
        ],
    }


# ==================================================================
# top level
# ==================================================================


def build_client_partnerships(
    engagements: Sequence[ClientEngagement],
    cases: Sequence[IssueResolutionCase],
    now: datetime,
) -> dict:
    management = build_management(engagements, now)
    commercial = build_commercial_operations(engagements, now)
    issues = build_issue_resolution(cases)
    clients = {e.client_name.strip().lower() for e in engagements if e.client_name}
    return {
        "totalClients": len(clients),
        "summary": {
            "activeContracts": management["totals"]["activeContracts"],
            "activeRetainerValue": management["totals"]["activeRetainerValue"],
            "outstandingInvoices": commercial["invoices"]["outstanding"],
            "renewalsDueSoon": sum(1 for r in commercial["renewals"] if r["dueSoon"]),
            "openIssues": issues["open"],
        },
        "management": management,
        "analytics": build_analytics(engagements),
        "calendars": build_calendars(engagements, now),
        "excellence": build_excellence(engagements, now),
        "portals": build_portals(engagements),
        "mandatePerformance": build_mandate_performance(engagements),
        "commercialOperations": commercial,
        "issueResolution": issues,
    }
