"""
Pipeline Aggregator - application funnel, aging and activity feeds.

Key contracts:
- Every application status maps to exactly one of six stage buckets;
  unmapped statuses fall into prospecting.
- Aging only counts non-terminal applications with a submitted_at, bucketed
  at <=7, <=14, <=30 and >30 elapsed days.
- Conversion rates use the previous bucket as denominator (1 when empty;
  the first step falls back to total applications).
- Hard caps: recent activity 15, candidate spotlight 6, activity timeline 20.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum

from headhunter.numbers import (
    average,
    days_between,
    parse_datetime,
    percentage,
    round_to,
    to_iso,
)
from headhunter.repositories.models import (
    Application,
    ApplicationReview,
    Candidate,
    ContactNote,
    PipelineItem,
)

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 15
SPOTLIGHT_LIMIT = 6
TIMELINE_LIMIT = 20


class StageBucket(Enum):
    PROSPECTING = "prospecting"
    SCREENING = "screening"
    INTERVIEWING = "interviewing"
    OFFERING = "offering"
    PLACEMENT = "placement"
    CLOSED = "closed"

    @property
    def label(self) -> str:
        return BUCKET_LABELS[self]


BUCKET_LABELS = {
    StageBucket.PROSPECTING: "Prospecting",
    StageBucket.SCREENING: "Screening",
    StageBucket.INTERVIEWING: "Interviewing",
    StageBucket.OFFERING: "Offer",
    StageBucket.PLACEMENT: "Placement",
    StageBucket.CLOSED: "Closed",
}

STATUS_BUCKETS = {
    "draft": StageBucket.PROSPECTING,
    "submitted": StageBucket.PROSPECTING,
    "under_review": StageBucket.SCREENING,
    "shortlisted": StageBucket.SCREENING,
    "interview": StageBucket.INTERVIEWING,
    "offered": StageBucket.OFFERING,
    "hired": StageBucket.PLACEMENT,
    "rejected": StageBucket.CLOSED,
    "withdrawn": StageBucket.CLOSED,
}

TERMINAL_STATUSES = frozenset({"hired", "rejected", "withdrawn"})

AGING_BUCKETS = (("0-7", 7), ("8-14", 14), ("15-30", 30), ("30+", None))


def bucket_for_status(status: str | None) -> StageBucket:
    return STATUS_BUCKETS.get((status or "").lower(), StageBucket.PROSPECTING)


def is_terminal(status: str | None) -> bool:
    return (status or "").lower() in TERMINAL_STATUSES


def aging_bucket(elapsed_days: float) -> str:
    """Label of the single aging bucket an elapsed-days value falls into."""
    for label, upper in AGING_BUCKETS:
        if upper is None or elapsed_days <= upper:
            return label
    raise AssertionError("unreachable: last aging bucket is open-ended")


def build_stage_breakdown(applications: Iterable[Application]) -> list[dict]:
    """One ordered entry per bucket; counts partition the input exactly once."""
    apps = list(applications)
    counts = dict.fromkeys(StageBucket, 0)
    values = dict.fromkeys(StageBucket, 0.0)
    for app in apps:
        bucket = bucket_for_status(app.status)
        counts[bucket] += 1
        values[bucket] += app.rate_expectation or 0.0

    total = len(apps)
    return [
        {
            "stage": bucket.value,
            "label": bucket.label,
            "count": counts[bucket],
            "value": round_to(values[bucket], 2),
            "percentage": percentage(counts[bucket], total),
        }
        for bucket in StageBucket
    ]


def compute_conversion(counts: Mapping[str, int], total: int) -> dict:
    prospecting = counts.get("prospecting", 0)
    screening = counts.get("screening", 0)
    interviewing = counts.get("interviewing", 0)
    offering = counts.get("offering", 0)
    placement = counts.get("placement", 0)
    return {
        "screeningRate": percentage(screening, prospecting or total),
        "interviewRate": percentage(interviewing, screening or 1),
        "offerRate": percentage(offering, interviewing or 1),
        "placementRate": percentage(placement, offering or 1),
    }


def compute_velocity(applications: Iterable[Application]) -> float | None:
    """Mean submitted->decision days over applications with a non-negative decision time."""
    samples = []
    for app in applications:
        elapsed = days_between(app.submitted_at, app.decision_at)
        if elapsed is not None and elapsed >= 0:
            samples.append(elapsed)
    return average(samples, digits=1)


def compute_aging(applications: Iterable[Application], now: datetime) -> dict:
    buckets = {label: 0 for label, _ in AGING_BUCKETS}
    for app in applications:
        if is_terminal(app.status):
            continue
        elapsed = days_between(app.submitted_at, now)
        if elapsed is None:
            continue
        buckets[aging_bucket(elapsed)] += 1
    return buckets


def build_recent_activity(
    applications: Iterable[Application],
    reviews: Iterable[ApplicationReview],
    limit: int = RECENT_ACTIVITY_LIMIT,
) -> list[dict]:
    events: list[tuple[datetime, int, dict]] = []
    for app in applications:
        timestamp = app.updated_at or app.submitted_at
        if timestamp is None:
            continue
        events.append(
            (
                timestamp,
                app.id,
                {
                    "type": "application",
                    "applicationId": app.id,
                    "status": app.status,
                    "stage": bucket_for_status(app.status).value,
                    "timestamp": to_iso(timestamp),
                },
            )
        )
    for review in reviews:
        if review.decided_at is None:
            continue
        events.append(
            (
                review.decided_at,
                review.application_id,
                {
                    "type": "review",
                    "applicationId": review.application_id,
                    "decision": review.decision,
                    "stage": review.stage,
                    "timestamp": to_iso(review.decided_at),
                },
            )
        )
    events.sort(key=lambda e: (e[0], e[1]), reverse=True)
    return [payload for _, _, payload in events[:limit]]


def build_pipeline_summary(
    applications: Iterable[Application],
    reviews: Iterable[ApplicationReview],
    now: datetime,
) -> dict:
    apps = list(applications)
    breakdown = build_stage_breakdown(apps)
    counts = {entry["stage"]: entry["count"] for entry in breakdown}
    active = [a for a in apps if not is_terminal(a.status)]

    return {
        "totals": {
            "applications": len(apps),
            "active": len(active),
            "hires": counts[StageBucket.PLACEMENT.value],
            "closed": counts[StageBucket.CLOSED.value],
            "pipelineValue": round_to(sum(a.rate_expectation or 0.0 for a in active), 2),
        },
        "stageBreakdown": breakdown,
        "conversion": compute_conversion(counts, len(apps)),
        "velocityDays": compute_velocity(apps),
        "agingBuckets": compute_aging(apps, now),
        "recentActivity": build_recent_activity(apps, reviews),
    }


def _touchpoint(app: Application) -> datetime | None:
    return app.last_touchpoint_at or app.updated_at or app.submitted_at


def build_candidate_spotlight(
    applications: Iterable[Application],
    candidates: Mapping[int, Candidate],
    limit: int = SPOTLIGHT_LIMIT,
) -> list[dict]:
    """One card per candidate with a profile, built from their most recently touched application."""
    latest: dict[int, Application] = {}
    for app in applications:
        if app.applicant_id not in candidates:
            continue
        current = latest.get(app.applicant_id)
        if current is None or _sort_key(app) > _sort_key(current):
            latest[app.applicant_id] = app

    cards = []
    for candidate_id, app in latest.items():
        candidate = candidates[candidate_id]
        cards.append(
            (
                _sort_key(app),
                {
                    "candidateId": candidate.id,
                    "name": candidate.name,
                    "headline": candidate.headline,
                    "location": candidate.location,
                    "availabilityStatus": candidate.availability_status,
                    "activeApplication": {
                        "id": app.id,
                        "status": app.status,
                        "stage": bucket_for_status(app.status).value,
                        "notes": list(app.notes),
                        "lastTouchpointAt": to_iso(_touchpoint(app)),
                    },
                },
            )
        )
    cards.sort(key=lambda c: c[0], reverse=True)
    return [card for _, card in cards[:limit]]


def _sort_key(app: Application) -> tuple[float, int]:
    touched = _touchpoint(app)
    return (touched.timestamp() if touched else float("-inf"), app.id)


def build_activity_timeline(
    recent_activity: Iterable[Mapping],
    contact_notes: Iterable[ContactNote],
    pipeline_items: Iterable[PipelineItem],
    limit: int = TIMELINE_LIMIT,
) -> list[dict]:
    """Pipeline activity, contact notes and pipeline-item notes merged newest first."""
    entries: list[tuple[datetime, dict]] = []

    for event in recent_activity:
        timestamp = parse_datetime(event.get("timestamp"))
        if timestamp is None:
            continue
        application_id = event.get("applicationId")
        if event.get("type") == "review":
            decision = event.get("decision") or "recorded"
            title = f"Review {decision} for application #{application_id}"
        else:
            title = f"Application #{application_id} moved to {event.get('status')}"
        entries.append(
            (timestamp, {"type": event.get("type"), "title": title, "timestamp": to_iso(timestamp)})
        )

    for note in contact_notes:
        if note.created_at is None:
            continue
        entries.append(
            (
                note.created_at,
                {
                    "type": "contact_note",
                    "title": f"Note on {note.subject_name or 'contact'}",
                    "author": note.author_name,
                    "body": note.note,
                    "timestamp": to_iso(note.created_at),
                },
            )
        )

    for item in pipeline_items:
        for note in item.notes:
            if note.created_at is None:
                continue
            entries.append(
                (
                    note.created_at,
                    {
                        "type": "pipeline_note",
                        "title": f"Pipeline note for {item.candidate_name}",
                        "author": note.author_name,
                        "body": note.body,
                        "timestamp": to_iso(note.created_at),
                    },
                )
            )

    entries.sort(key=lambda e: e[0], reverse=True)
    return [payload for _, payload in entries[:limit]]


def group_by_target(
    applications: Iterable[Application], target_type: str
) -> dict[int, list[Application]]:
    grouped: dict[int, list[Application]] = defaultdict(list)
    for app in applications:
        if (app.target_type or "").lower() == target_type and app.target_id is not None:
            grouped[app.target_id].append(app)
    return grouped
