"""
Wellbeing Tracker - burnout risk from self-reported logs and workload.

Score: the latest log's explicit score, else
clamp(0, 100, round(avgEnergy * 10 - avgStress * 6 + 55)) when logs exist.

Burnout risk:
- high:   avgStress >= 7, workloadPerMember > 15 or fewer than 2 downtime blocks
- medium: avgStress >= 5 or workloadPerMember > 12
- low:    otherwise
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from headhunter.numbers import average, clamp, round_half_up, round_to, to_iso
from headhunter.repositories.models import (
    Application,
    AvailabilityWindow,
    WellbeingLog,
    WorkspaceMember,
)

from .pipeline import is_terminal

DOWNTIME_TYPES = frozenset({"downtime", "wellbeing", "recovery"})

REFLECTION_PROMPTS = (
    "What gave you energy in this week's searches?",
    "Which mandate or conversation drained you most, and why?",
    "What is one boundary you will protect next week?",
)


def burnout_risk(
    average_stress: float | None, workload_per_member: float, downtime_blocks: int
) -> str:
    stress = average_stress if average_stress is not None else 0.0
    if stress >= 7 or workload_per_member > 15 or downtime_blocks < 2:
        return "high"
    if stress >= 5 or workload_per_member > 12:
        return "medium"
    return "low"


def wellbeing_score(logs: Sequence[WellbeingLog]) -> float | None:
    if not logs:
        return None
    latest = max(
        logs,
        key=lambda log: (log.logged_at.timestamp() if log.logged_at else float("-inf"), log.id),
    )
    if latest.wellbeing_score is not None:
        return latest.wellbeing_score
    energy = average(log.energy_score for log in logs) or 0.0
    stress = average(log.stress_score for log in logs) or 0.0
    return float(clamp(round_half_up(energy * 10 - stress * 6 + 55), 0, 100))


def build_wellbeing(
    logs: Sequence[WellbeingLog],
    applications: Iterable[Application],
    members: Sequence[WorkspaceMember],
    windows: Sequence[AvailabilityWindow],
    now: datetime,
) -> dict:
    active_members = sum(1 for m in members if m.status == "active")
    open_applications = sum(1 for a in applications if not is_terminal(a.status))
    workload = open_applications / max(active_members, 1)
    downtime = sum(1 for w in windows if w.availability_type in DOWNTIME_TYPES)

    # thresholds compare unrounded means; only the payload is rounded
    avg_energy = average(log.energy_score for log in logs)
    avg_stress = average(log.stress_score for log in logs)
    risk = burnout_risk(avg_stress, workload, downtime)
    stamps = [log.logged_at for log in logs if log.logged_at is not None]

    reminders = []
    if not logs:
        reminders.append("No wellbeing check-ins in this window; schedule one this week.")
    if downtime < 2:
        reminders.append("Block at least two downtime windows in the shared calendar.")
    if avg_stress is not None and avg_stress >= 5:
        reminders.append("Stress is trending high; review mandate load in the next stand-up.")
    if workload > 12:
        reminders.append(
            f"Each recruiter is carrying {round_to(workload, 1)} open applications; "
            "rebalance ownership."
        )
    if stamps and (now - max(stamps)).days >= 7:
        reminders.append("Last check-in was over a week ago; prompt the team for an update.")

    return {
        "score": wellbeing_score(logs),
        "burnoutRisk": risk,
        "averages": {"energy": round_to(avg_energy, 1), "stress": round_to(avg_stress, 1)},
        "workloadPerMember": round_to(workload, 1),
        "downtimeBlocks": downtime,
        "checkIns": len(logs),
        "lastCheckInAt": to_iso(max(stamps)) if stamps else None,
        "reminders": reminders,
        "reflectionPrompts": list(REFLECTION_PROMPTS),
    }
