"""
Intelligence Hub - gap analysis against computed targets.

Targets (defaults from config/intelligence_targets.yaml):
- pipeline value: max(current, activeMandates x 150,000, or 150,000 when no mandates)
- placements: max(activeMandates, ceil(activeMandates x 0.75), 1), compared
  against forecasted placements = placements + round(offers x 0.65)
- activity: max(round(lookbackDays / 7 x 50), 40) touchpoints

Only metrics below target become gaps. Rounding is half-up.
"""

import math
from collections.abc import Mapping
from datetime import datetime, timedelta

from headhunter.config import IntelligenceTargets
from headhunter.numbers import round_half_up, round_to, to_iso

WEEKLY_REVIEW_TOPICS = (
    "Pipeline health and stage conversion",
    "Mandate coverage and client commitments",
    "Outreach cadence and candidate experience",
)
REVIEW_INTERVAL = timedelta(days=7)


def _bucket_count(pipeline_summary: Mapping, stage: str) -> int:
    for entry in pipeline_summary.get("stageBreakdown", []):
        if entry["stage"] == stage:
            return entry["count"]
    return 0


def _metric(key: str, label: str, current: float, target: float) -> dict:
    below = current < target
    return {
        "key": key,
        "label": label,
        "current": current,
        "target": target,
        "gap": round_to(target - current, 2) if below else 0,
        "status": "below_target" if below else "on_track",
    }


def build_intelligence_hub(
    pipeline_summary: Mapping,
    mandate_portfolio: Mapping,
    outreach: Mapping,
    lookback_days: int,
    now: datetime,
    targets: IntelligenceTargets | None = None,
) -> dict:
    targets = targets or IntelligenceTargets()
    active_mandates = mandate_portfolio["totals"]["activeMandates"]
    current_value = pipeline_summary["totals"]["pipelineValue"] or 0.0
    placements = pipeline_summary["totals"]["hires"]
    offers = _bucket_count(pipeline_summary, "offering")
    stalled = pipeline_summary["agingBuckets"].get("30+", 0)
    activity = outreach.get("totalMessages", 0)

    value_target = max(
        current_value,
        active_mandates * targets.pipeline_value_per_mandate or targets.pipeline_value_floor,
    )
    forecasted = placements + round_half_up(offers * targets.offer_conversion_factor)
    placement_target = max(
        active_mandates, math.ceil(active_mandates * targets.placement_coverage), 1
    )
    activity_target = max(
        round_half_up(lookback_days / 7 * targets.touchpoints_per_week), targets.touchpoint_floor
    )

    metrics = [
        _metric(
            "pipelineValue", "Pipeline value", round_to(current_value, 2), round_to(value_target, 2)
        ),
        _metric("placements", "Forecasted placements", forecasted, placement_target),
        _metric("activity", "Outreach touchpoints", activity, activity_target),
    ]
    gaps = [m for m in metrics if m["status"] == "below_target"]
    gap_by_key = {g["key"]: g for g in gaps}

    actions = []
    if "placements" in gap_by_key:
        shortfall = math.ceil(gap_by_key["placements"]["gap"])
        actions.append(
            f"Close {shortfall} more placement(s) to cover {active_mandates} active mandate(s)."
        )
    if offers:
        actions.append(f"Advance {offers} candidate(s) currently at offer stage to signature.")
    if "activity" in gap_by_key:
        shortfall = math.ceil(gap_by_key["activity"]["gap"])
        actions.append(
            f"Log {shortfall} more outreach touchpoints to reach the {activity_target} target."
        )
    if stalled:
        actions.append(f"Review {stalled} stalled candidate(s) aging beyond 30 days.")
    if not actions:
        actions.append("Pipeline is on target; keep the weekly review cadence.")

    return {
        "gapAnalysis": {
            "metrics": metrics,
            "gaps": gaps,
            "forecastedPlacements": forecasted,
        },
        "recommendedActions": actions,
        "weeklyReview": {
            "topics": list(WEEKLY_REVIEW_TOPICS),
            "nextReviewAt": to_iso(now + REVIEW_INTERVAL),
            "focusMetrics": [g["label"] for g in gaps],
        },
    }
