"""
Pipeline Execution Engine - kanban, heatmap, interviews, candidate experience
and the pass-on exchange over workspace pipeline items.

Key contracts:
- A workspace with zero stages gets the six default stages exactly once.
  The engine serialises seeding in-process and the repository re-counts
  under a write transaction, so concurrent first callers never double-seed.
- Items whose stage is not in the workspace are skipped; stage summaries
  partition the remaining items exactly once.
- Dominant risk precedence: high > medium > low.
- Hard caps: kanban 8 per stage, upcoming interviews 12, experience vault 12.
"""

import logging
import threading
from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from enum import Enum

from headhunter.numbers import (
    average,
    days_between,
    parse_number,
    round_to,
    to_iso,
    week_bounds,
)
from headhunter.repositories.models import (
    PassOnShare,
    PipelineItem,
    PipelineStage,
    StageTemplate,
)

logger = logging.getLogger(__name__)

DEFAULT_PIPELINE_STAGES = (
    StageTemplate("Discovery", "discovery", 0.10),
    StageTemplate("Qualification", "qualification", 0.25),
    StageTemplate("Client interview", "interview", 0.45),
    StageTemplate("Offer", "offer", 0.70),
    StageTemplate("Placement", "placement", 1.00),
    StageTemplate("Pass-on archive", "archive", 0.00),
)

KANBAN_LIMIT = 8
UPCOMING_INTERVIEW_LIMIT = 12
EXPERIENCE_LIMIT = 12

SENTIMENT_SCORES = {
    "delighted": 1.0,
    "positive": 1.0,
    "excited": 1.0,
    "optimistic": 0.6,
    "warm": 0.6,
    "neutral": 0.0,
    "steady": 0.0,
    "caution": -0.3,
    "mixed": -0.3,
    "guarded": -0.3,
    "risk": -0.8,
    "concern": -0.8,
    "negative": -0.8,
    "fatigue": -0.8,
}

WELLBEING_ALERT_VALUES = frozenset({"at_risk", "strained", "burnout", "fatigued", "concern", "low"})
WELLBEING_ALERT_THRESHOLD = 40.0

ACCEPTED_SHARE_STATUSES = frozenset({"accepted", "completed"})
DECLINED_SHARE_STATUSES = frozenset({"declined", "rejected", "revoked"})


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


RISK_ALIASES = {
    "critical": RiskLevel.HIGH,
    "high": RiskLevel.HIGH,
    "medium": RiskLevel.MEDIUM,
    "moderate": RiskLevel.MEDIUM,
    "low": RiskLevel.LOW,
}

RISK_PRECEDENCE = (RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW)


def normalize_risk(value: str | None) -> RiskLevel | None:
    return RISK_ALIASES.get((value or "").strip().lower())


def sentiment_score(value: str | None) -> float:
    return SENTIMENT_SCORES.get((value or "").strip().lower(), 0.0)


def risk_distribution(items: Iterable[PipelineItem]) -> dict[str, int]:
    distribution = {level.value: 0 for level in RiskLevel}
    for item in items:
        level = normalize_risk(item.insights.risk)
        if level is not None:
            distribution[level.value] += 1
    return distribution


def dominant_risk(distribution: Mapping[str, int]) -> str | None:
    for level in RISK_PRECEDENCE:
        if distribution.get(level.value):
            return level.value
    return None


def average_sentiment(items: Iterable[PipelineItem]) -> float | None:
    return average((sentiment_score(i.insights.sentiment) for i in items), digits=2)


def is_wellbeing_alert(value: str | None) -> bool:
    if not value:
        return False
    if value.strip().lower() in WELLBEING_ALERT_VALUES:
        return True
    number = parse_number(value)
    return number is not None and number <= WELLBEING_ALERT_THRESHOLD


def projected_share_revenue(share: PassOnShare, item: PipelineItem) -> float:
    """estimatedValue x rate% when a rate is set, else the flat amount."""
    if share.revenue_share_rate is not None:
        return (item.estimated_value or 0.0) * share.revenue_share_rate / 100
    return share.revenue_share_amount or 0.0


def _days_in_stage(item: PipelineItem, now: datetime) -> float | None:
    elapsed = days_between(item.stage_entered_at, now)
    return max(elapsed, 0.0) if elapsed is not None else None


def _score_key(item: PipelineItem) -> tuple[bool, float, int]:
    return (item.score is not None, item.score or 0.0, -item.id)


def _recency(item: PipelineItem) -> tuple[float, int]:
    stamp = item.updated_at or item.stage_entered_at
    return (stamp.timestamp() if stamp else float("-inf"), item.id)


def _stage_summary(stage: PipelineStage, items: list[PipelineItem], now: datetime) -> dict:
    distribution = risk_distribution(items)
    value = sum(i.estimated_value or 0.0 for i in items)
    return {
        "id": stage.id,
        "name": stage.name,
        "stageType": stage.stage_type,
        "position": stage.position,
        "winProbability": stage.win_probability,
        "itemCount": len(items),
        "averageScore": average((i.score for i in items), digits=1),
        "averageDaysInStage": average((_days_in_stage(i, now) for i in items), digits=1),
        "notesCount": sum(len(i.notes) for i in items),
        "attachmentsCount": sum(len(i.attachments) for i in items),
        "riskDistribution": distribution,
        "dominantRisk": dominant_risk(distribution),
        "averageSentiment": average_sentiment(items),
        "value": round_to(value, 2),
        "weightedValue": round_to(value * (stage.win_probability or 0.0), 2),
    }


def _kanban_card(item: PipelineItem, now: datetime) -> dict:
    days = _days_in_stage(item, now)
    risk = normalize_risk(item.insights.risk)
    return {
        "id": item.id,
        "candidateName": item.candidate_name,
        "score": item.score,
        "status": item.status,
        "nextStep": item.next_step,
        "estimatedValue": item.estimated_value,
        "daysInStage": round_to(days, 1),
        "risk": risk.value if risk else None,
        "sentiment": item.insights.sentiment,
    }


def build_interview_coordination(items: Sequence[PipelineItem], now: datetime) -> dict:
    week_start, week_end = week_bounds(now)
    upcoming = []
    completed_this_week = 0
    scheduled_this_week = 0
    timezones: Counter[str] = Counter()

    for item in items:
        for interview in item.interviews:
            if interview.status == "cancelled":
                continue
            if interview.timezone:
                timezones[interview.timezone] += 1
            scheduled = interview.scheduled_at
            if scheduled is not None and week_start <= scheduled < week_end:
                scheduled_this_week += 1
            if interview.status == "completed":
                done_at = interview.completed_at or scheduled
                if done_at is not None and week_start <= done_at < week_end:
                    completed_this_week += 1
                continue
            if scheduled is not None and scheduled >= now:
                upcoming.append((scheduled, interview.id, item, interview))

    upcoming.sort(key=lambda u: (u[0], u[1]))
    return {
        "upcoming": [
            {
                "id": interview.id,
                "itemId": item.id,
                "candidateName": item.candidate_name,
                "type": interview.interview_type,
                "status": interview.status,
                "scheduledAt": to_iso(scheduled),
                "durationMinutes": interview.duration_minutes,
                "timezone": interview.timezone,
            }
            for scheduled, _, item, interview in upcoming[:UPCOMING_INTERVIEW_LIMIT]
        ],
        "completedThisWeek": completed_this_week,
        "scheduledThisWeek": scheduled_this_week,
        "timezones": [{"timezone": tz, "count": n} for tz, n in timezones.most_common()],
        "distinctTimezones": len(timezones),
    }


def build_candidate_experience(
    items: Sequence[PipelineItem], stage_names: Mapping[int, str]
) -> dict:
    recent = sorted(items, key=_recency, reverse=True)[:EXPERIENCE_LIMIT]
    return {
        "entries": [
            {
                "itemId": item.id,
                "candidateName": item.candidate_name,
                "stage": stage_names.get(item.stage_id),
                "sentiment": item.insights.sentiment,
                "readiness": item.insights.readiness,
                "wellbeing": item.insights.wellbeing,
                "blockers": list(item.insights.blockers),
                "nextStep": item.next_step,
                "updatedAt": to_iso(item.updated_at or item.stage_entered_at),
            }
            for item in recent
        ],
        "readinessIndex": average((i.insights.readiness for i in items), digits=1),
        "wellbeingAlerts": [
            {"itemId": i.id, "candidateName": i.candidate_name, "wellbeing": i.insights.wellbeing}
            for i in items
            if is_wellbeing_alert(i.insights.wellbeing)
        ],
    }


def build_pass_on_exchange(items: Sequence[PipelineItem]) -> dict:
    shares = []
    accepted = pending = 0
    projected_total = 0.0
    for item in items:
        for share in item.pass_on_shares:
            projected = projected_share_revenue(share, item)
            projected_total += projected
            if share.status in ACCEPTED_SHARE_STATUSES:
                accepted += 1
            elif share.status not in DECLINED_SHARE_STATUSES:
                pending += 1
            shares.append(
                {
                    "id": share.id,
                    "itemId": item.id,
                    "candidateName": item.candidate_name,
                    "target": share.target_name,
                    "targetType": share.target_type,
                    "status": share.status,
                    "consentStatus": share.consent_status,
                    "revenueShareRate": share.revenue_share_rate,
                    "projectedRevenue": round_to(projected, 2),
                    "sharedAt": to_iso(share.shared_at),
                }
            )
    return {
        "shares": shares,
        "totals": {
            "totalShares": len(shares),
            "accepted": accepted,
            "pending": pending,
            "projectedRevenue": round_to(projected_total, 2),
        },
    }


def build_pipeline_execution(
    stages: Sequence[PipelineStage],
    items: Iterable[PipelineItem],
    now: datetime,
    seeded_default_stages: bool = False,
) -> dict:
    """Pure aggregation over already-loaded stages and items."""
    by_stage: dict[int, list[PipelineItem]] = defaultdict(list)
    stage_ids = {s.id for s in stages}
    placed: list[PipelineItem] = []
    for item in items:
        if item.stage_id not in stage_ids:
            logger.debug("Skipping pipeline item %s with unknown stage %s", item.id, item.stage_id)
            continue
        by_stage[item.stage_id].append(item)
        placed.append(item)

    summaries = [_stage_summary(stage, by_stage[stage.id], now) for stage in stages]
    overall_distribution = risk_distribution(placed)

    return {
        "totals": {
            "stages": len(stages),
            "items": len(placed),
            "weightedPipelineValue": round_to(sum(s["weightedValue"] for s in summaries), 2),
            "averageScore": average((i.score for i in placed), digits=1),
        },
        "stages": summaries,
        "kanban": [
            {
                "stageId": stage.id,
                "name": stage.name,
                "items": [
                    _kanban_card(i, now)
                    for i in sorted(by_stage[stage.id], key=_score_key, reverse=True)[:KANBAN_LIMIT]
                ],
            }
            for stage in stages
        ],
        "heatmap": {
            "stages": [
                {
                    "stageId": s["id"],
                    "name": s["name"],
                    "riskDistribution": s["riskDistribution"],
                    "dominantRisk": s["dominantRisk"],
                    "averageSentiment": s["averageSentiment"],
                }
                for s in summaries
            ],
            "overall": {
                "riskDistribution": overall_distribution,
                "dominantRisk": dominant_risk(overall_distribution),
                "averageSentiment": average_sentiment(placed),
            },
        },
        "interviews": build_interview_coordination(placed, now),
        "candidateExperience": build_candidate_experience(placed, {s.id: s.name for s in stages}),
        "passOnExchange": build_pass_on_exchange(placed),
        "seededDefaultStages": seeded_default_stages,
    }


class PipelineExecutionEngine:
    """
    Loads a workspace's pipeline (seeding default stages on first use) and
    builds the execution report.

    One engine is shared by all snapshot builds of a service instance.
    """

    def __init__(self, repository, stages: Sequence[StageTemplate] = DEFAULT_PIPELINE_STAGES):
        self.repository = repository
        self.stages = tuple(stages)
        self._seed_lock = threading.Lock()

    def ensure_default_stages(self, workspace_id: int) -> bool:
        """Seed the default stages if the workspace has none. True if this call seeded."""
        if self.repository.count_pipeline_stages(workspace_id):
            return False
        with self._seed_lock:
            inserted = self.repository.seed_default_stages(workspace_id, self.stages)
        if inserted:
            logger.info(
                "seeded %d default pipeline stages for workspace %s", inserted, workspace_id
            )
        return bool(inserted)

    def load(self, workspace_id: int) -> tuple[list[PipelineStage], list[PipelineItem], bool]:
        seeded = self.ensure_default_stages(workspace_id)
        stages = self.repository.list_pipeline_stages(workspace_id)
        items = self.repository.list_pipeline_items(workspace_id)
        return stages, items, seeded
