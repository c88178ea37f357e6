"""
Prospect Intelligence - profile overview, talent cards, search cockpit,
campaign studio and research collaboration.

Campaign rates at or below 1 are fractions and are rescaled to percentages.
Hard caps: talent profiles 6 (4 signals each), signal stream 20, motivators 5.
"""

from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import datetime

from headhunter.numbers import average, percentage, round_to, to_iso
from headhunter.repositories.models import (
    ProspectCampaign,
    ProspectProfile,
    ProspectSearch,
    ProspectSignal,
    ResearchNote,
    ResearchTask,
)

TALENT_PROFILE_LIMIT = 6
PROFILE_SIGNAL_LIMIT = 4
SIGNAL_STREAM_LIMIT = 20
MOTIVATOR_LIMIT = 5

RESTRICTED_VISIBILITY = "restricted"
CLOSED_TASK_STATUSES = frozenset({"done", "completed", "cancelled"})


def normalize_rate(value: float | None) -> float | None:
    """Rates <= 1 are fractions; rescale them to a 0-100 percentage."""
    if value is None:
        return None
    return round_to(value * 100 if value <= 1 else value, 1)


def _stamp(value: datetime | None) -> float:
    return value.timestamp() if value else float("-inf")


def _signal(signal: ProspectSignal) -> dict:
    return {
        "id": signal.id,
        "type": signal.signal_type,
        "title": signal.title,
        "intentLevel": signal.intent_level,
        "source": signal.source,
        "occurredAt": to_iso(signal.occurred_at),
    }


def _recent_signals(profile: ProspectProfile) -> list[ProspectSignal]:
    return sorted(profile.signals, key=lambda s: (_stamp(s.occurred_at), s.id), reverse=True)


def build_overview(profiles: Sequence[ProspectProfile]) -> dict:
    relocation = Counter((p.relocation_status or "unknown").lower() for p in profiles)
    motivators = Counter(m.lower() for p in profiles for m in p.motivators)
    signals = [s for p in profiles for s in p.signals]
    return {
        "totalProfiles": len(profiles),
        "relocationReadiness": dict(sorted(relocation.items())),
        "averageCompensationTarget": average((p.compensation_target for p in profiles), digits=2),
        "exclusivityConflicts": sum(1 for p in profiles if p.exclusivity_conflict),
        "topMotivators": [
            {"motivator": name, "count": count}
            for name, count in sorted(motivators.items(), key=lambda m: (-m[1], m[0]))[
                :MOTIVATOR_LIMIT
            ]
        ],
        "signalCount": len(signals),
        "highIntentSignals": sum(1 for s in signals if s.intent_level == "high"),
    }


def build_talent_profiles(profiles: Sequence[ProspectProfile]) -> list[dict]:
    ranked = sorted(profiles, key=lambda p: (_stamp(p.aggregated_at), p.id), reverse=True)
    return [
        {
            "id": p.id,
            "candidateId": p.candidate.id if p.candidate else None,
            "name": p.display_name,
            "headline": p.headline or (p.candidate.headline if p.candidate else None),
            "relocationStatus": p.relocation_status,
            "compensationTarget": p.compensation_target,
            "compensationCurrency": p.compensation_currency,
            "exclusivityConflict": p.exclusivity_conflict,
            "motivators": list(p.motivators),
            "aggregatedAt": to_iso(p.aggregated_at),
            "signals": [_signal(s) for s in _recent_signals(p)[:PROFILE_SIGNAL_LIMIT]],
        }
        for p in ranked[:TALENT_PROFILE_LIMIT]
    ]


def build_cockpit(profiles: Sequence[ProspectProfile], searches: Sequence[ProspectSearch]) -> dict:
    coverage: dict[str, int] = defaultdict(int)
    for search in searches:
        for industry in search.industries:
            coverage[industry] += 1

    stream = [(s, p) for p in profiles for s in p.signals]
    stream.sort(key=lambda sp: (_stamp(sp[0].occurred_at), sp[0].id), reverse=True)

    return {
        "savedSearches": [
            {
                "id": s.id,
                "name": s.name,
                "industries": list(s.industries),
                "resultsCount": s.results_count or 0,
                "lastRunAt": to_iso(s.last_run_at),
                "alerts": [
                    {
                        "id": a.id,
                        "channel": a.channel,
                        "cadence": a.cadence,
                        "status": a.status,
                        "lastTriggeredAt": to_iso(a.last_triggered_at),
                    }
                    for a in s.alerts
                ],
            }
            for s in searches
        ],
        "activeAlerts": sum(1 for s in searches for a in s.alerts if a.status == "active"),
        "industryCoverage": dict(sorted(coverage.items(), key=lambda c: (-c[1], c[0]))),
        "signalStream": [
            {**_signal(signal), "profileId": profile.id, "name": profile.display_name}
            for signal, profile in stream[:SIGNAL_STREAM_LIMIT]
        ],
    }


def build_campaign_studio(campaigns: Sequence[ProspectCampaign]) -> dict:
    channels: dict[str, dict[str, int]] = defaultdict(
        lambda: {"sends": 0, "replies": 0, "conversions": 0}
    )
    rendered = []
    for c in campaigns:
        steps = []
        for step in sorted(c.steps, key=lambda s: (s.step_order, s.id)):
            channel = (step.channel or "unknown").lower()
            totals = channels[channel]
            totals["sends"] += step.sends or 0
            totals["replies"] += step.replies or 0
            totals["conversions"] += step.conversions or 0
            steps.append(
                {
                    "order": step.step_order,
                    "channel": channel,
                    "sends": step.sends or 0,
                    "replies": step.replies or 0,
                    "conversions": step.conversions or 0,
                    "replyRate": percentage(step.replies or 0, step.sends or 0),
                }
            )
        rendered.append(
            {
                "id": c.id,
                "name": c.name,
                "status": c.status,
                "targetPersona": c.target_persona,
                "responseRate": normalize_rate(c.response_rate),
                "conversionRate": normalize_rate(c.conversion_rate),
                "launchedAt": to_iso(c.launched_at),
                "steps": steps,
            }
        )

    return {
        "campaigns": rendered,
        "activeCampaigns": sum(1 for c in campaigns if c.status == "active"),
        "averageResponseRate": average((c["responseRate"] for c in rendered), digits=1),
        "averageConversionRate": average((c["conversionRate"] for c in rendered), digits=1),
        "channelPerformance": [
            {"channel": name, **totals, "replyRate": percentage(totals["replies"], totals["sends"])}
            for name, totals in sorted(channels.items())
        ],
    }


def build_research(
    notes: Sequence[ResearchNote], tasks: Sequence[ResearchTask], now: datetime
) -> dict:
    compliance = []
    for note in notes:
        if note.visibility == RESTRICTED_VISIBILITY and note.created_at is not None:
            compliance.append(
                (
                    note.created_at,
                    {
                        "type": "restricted_note",
                        "noteId": note.id,
                        "title": note.title,
                        "timestamp": to_iso(note.created_at),
                    },
                )
            )
        if note.retention_review_at is not None:
            compliance.append(
                (
                    note.retention_review_at,
                    {
                        "type": "retention_review",
                        "noteId": note.id,
                        "title": note.title,
                        "timestamp": to_iso(note.retention_review_at),
                    },
                )
            )
    compliance.sort(key=lambda c: c[0], reverse=True)

    open_tasks = [t for t in tasks if t.status not in CLOSED_TASK_STATUSES]
    return {
        "notes": [
            {
                "id": n.id,
                "profileId": n.profile_id,
                "author": n.author_name,
                "title": n.title,
                "visibility": n.visibility,
                "createdAt": to_iso(n.created_at),
            }
            for n in notes
        ],
        "tasks": [
            {
                "id": t.id,
                "profileId": t.profile_id,
                "title": t.title,
                "status": t.status,
                "priority": t.priority,
                "assignee": t.assignee_name,
                "dueAt": to_iso(t.due_at),
            }
            for t in tasks
        ],
        "openTasks": len(open_tasks),
        "overdueTasks": sum(1 for t in open_tasks if t.due_at is not None and t.due_at < now),
        "guardrails": {
            "restrictedNotes": sum(1 for n in notes if n.visibility == RESTRICTED_VISIBILITY),
            "retentionReviewsDue": sum(
                1 for n in notes if n.retention_review_at is not None and n.retention_review_at <= now
            ),
        },
        "complianceLog": [entry for _, entry in compliance],
    }


def build_prospect_intelligence(
    profiles: Sequence[ProspectProfile],
    searches: Sequence[ProspectSearch],
    campaigns: Sequence[ProspectCampaign],
    notes: Sequence[ResearchNote],
    tasks: Sequence[ResearchTask],
    now: datetime,
) -> dict:
    return {
        "overview": build_overview(profiles),
        "talentProfiles": build_talent_profiles(profiles),
        "cockpit": build_cockpit(profiles, searches),
        "campaignStudio": build_campaign_studio(campaigns),
        "research": build_research(notes, tasks, now),
    }
