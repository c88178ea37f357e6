"""
Calendar and calendar orchestration.

build_calendar is the single calendar contract: upcoming pipeline
interviews, engagement schedule events and open milestones, plus a
weekly workload summary.

build_calendar_orchestration formats availability windows and proposes
focus blocks. Scheduled "focus" windows win; without any, a 60 minute block
ending 30 minutes before each interview, presentation or briefing is
recommended.
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from headhunter.numbers import to_iso, week_bounds
from headhunter.repositories.models import (
    AvailabilityWindow,
    ClientEngagement,
    PipelineItem,
    Workspace,
    WorkspaceMember,
)

UPCOMING_LIMIT = 10
FOCUS_BLOCK_LIMIT = 6
BROADCAST_LIMIT = 6

# day_of_week follows the 0 = Sunday convention of the availability records
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

FOCUS_TYPE = "focus"
PREP_EVENT_TYPES = frozenset({"interview", "presentation", "briefing"})
PREP_BLOCK_LENGTH = timedelta(minutes=60)
PREP_BLOCK_BUFFER = timedelta(minutes=30)
OPEN_MILESTONE_EXCLUDED = frozenset({"completed", "cancelled"})


def day_name(day_of_week: int | None) -> str | None:
    if day_of_week is None or not 0 <= day_of_week < len(DAY_NAMES):
        return None
    return DAY_NAMES[day_of_week]


def _open_interviews(items: Iterable[PipelineItem]):
    for item in items:
        for interview in item.interviews:
            if interview.status in ("cancelled", "completed") or interview.scheduled_at is None:
                continue
            yield item, interview


def build_calendar(
    items: Sequence[PipelineItem],
    engagements: Sequence[ClientEngagement],
    stage_names: Mapping[int, str],
    now: datetime,
) -> dict:
    entries: list[tuple[datetime, dict]] = []
    week_start, week_end = week_bounds(now)
    busy_days: Counter[str] = Counter()
    interviews_this_week = events_this_week = milestones_due = 0

    for item, interview in _open_interviews(items):
        when = interview.scheduled_at
        if week_start <= when < week_end:
            interviews_this_week += 1
            busy_days[when.strftime("%A")] += 1
        if when >= now:
            entries.append(
                (
                    when,
                    {
                        "label": f"Interview with {item.candidate_name}",
                        "date": to_iso(when),
                        "stage": stage_names.get(item.stage_id),
                    },
                )
            )

    for engagement in engagements:
        for event in engagement.schedule_events:
            when = event.starts_at
            if when is None:
                continue
            if week_start <= when < week_end:
                events_this_week += 1
                busy_days[when.strftime("%A")] += 1
            if when >= now:
                entries.append(
                    (
                        when,
                        {
                            "label": f"{event.title} ({engagement.client_name})",
                            "date": to_iso(when),
                            "type": event.event_type or "event",
                        },
                    )
                )
        for milestone in engagement.milestones:
            if milestone.status in OPEN_MILESTONE_EXCLUDED or milestone.due_at is None:
                continue
            if milestone.due_at <= now + timedelta(days=7):
                milestones_due += 1
            if milestone.due_at >= now:
                entries.append(
                    (
                        milestone.due_at,
                        {
                            "label": f"{milestone.title} ({engagement.client_name})",
                            "date": to_iso(milestone.due_at),
                            "type": "milestone",
                        },
                    )
                )

    entries.sort(key=lambda e: e[0])
    busiest = busy_days.most_common(1)
    return {
        "upcoming": [payload for _, payload in entries[:UPCOMING_LIMIT]],
        "workload": {
            "interviewsThisWeek": interviews_this_week,
            "eventsThisWeek": events_this_week,
            "milestonesDue": milestones_due,
            "busiestDay": busiest[0][0] if busiest else None,
        },
    }


def format_window(window: AvailabilityWindow) -> dict:
    day = day_name(window.day_of_week)
    span = f"{window.start_time or '?'}-{window.end_time or '?'}"
    return {
        "id": window.id,
        "day": day,
        "startTime": window.start_time,
        "endTime": window.end_time,
        "type": window.availability_type,
        "broadcastChannels": list(window.broadcast_channels),
        "label": f"{day or 'Any day'} {span} ({window.availability_type})",
    }


def recommend_focus_blocks(
    items: Iterable[PipelineItem], engagements: Iterable[ClientEngagement], now: datetime
) -> list[dict]:
    anchors: list[tuple[datetime, str]] = [
        (interview.scheduled_at, f"Interview with {item.candidate_name}")
        for item, interview in _open_interviews(items)
        if interview.scheduled_at >= now
    ]
    for engagement in engagements:
        for event in engagement.schedule_events:
            if event.starts_at is None or event.starts_at < now:
                continue
            if (event.event_type or "") in PREP_EVENT_TYPES:
                anchors.append((event.starts_at, event.title))

    anchors.sort(key=lambda a: a[0])
    blocks = []
    for starts_at, title in anchors[:FOCUS_BLOCK_LIMIT]:
        block_end = starts_at - PREP_BLOCK_BUFFER
        blocks.append(
            {
                "source": "recommended",
                "label": f"Prep for {title}",
                "startsAt": to_iso(block_end - PREP_BLOCK_LENGTH),
                "endsAt": to_iso(block_end),
            }
        )
    return blocks


def _unique(values: Iterable[str | None], limit: int) -> list[str]:
    seen: dict[str, str] = {}
    for value in values:
        if not value:
            continue
        key = value.strip().lower()
        if key and key not in seen:
            seen[key] = value.strip()
    return list(seen.values())[:limit]


def build_calendar_orchestration(
    workspace: Workspace,
    windows: Sequence[AvailabilityWindow],
    items: Sequence[PipelineItem],
    engagements: Sequence[ClientEngagement],
    members: Sequence[WorkspaceMember],
    now: datetime,
) -> dict:
    scheduled_focus = [
        {"source": "scheduled", **format_window(w)}
        for w in windows
        if w.availability_type == FOCUS_TYPE
    ][:FOCUS_BLOCK_LIMIT]

    recipients = [r for w in windows for r in w.recipients]
    recipients.append(workspace.intake_email)
    recipients.extend(e.contact_email for e in engagements)
    recipients.extend(m.email for m in members if m.status == "active")

    return {
        "timezone": workspace.timezone or "UTC",
        "availability": [format_window(w) for w in windows],
        "focusBlocks": scheduled_focus or recommend_focus_blocks(items, engagements, now),
        "broadcast": {
            "channels": _unique((c for w in windows for c in w.broadcast_channels), BROADCAST_LIMIT),
            "recipients": _unique(recipients, BROADCAST_LIMIT),
        },
    }
