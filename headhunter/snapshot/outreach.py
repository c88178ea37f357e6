"""
Outreach Analytics - message threads scoped to the workspace.

Threads without scope metadata are global and always included. A message
with no direction counts as outbound. Response time pairs the earliest
unanswered outbound message with the next inbound reply on the thread.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from headhunter.numbers import average, hours_between, percentage, round_to, to_iso
from headhunter.repositories.models import MessageThread, Workspace
from headhunter.repositories.scope import GLOBAL_SCOPE

CAMPAIGN_LIMIT = 10
INBOUND = "inbound"
OUTBOUND = "outbound"


def scope_threads(threads: Iterable[MessageThread], workspace: Workspace) -> list[MessageThread]:
    return [
        t
        for t in threads
        if t.scope.scope == GLOBAL_SCOPE or t.scope.matches(workspace.id, workspace.slug)
    ]


def _direction(value: str | None) -> str:
    return INBOUND if value == INBOUND else OUTBOUND


def response_samples(thread: MessageThread) -> list[float]:
    """Hours from each unanswered outbound run to the reply that closed it."""
    samples = []
    pending: datetime | None = None
    ordered = sorted(
        (m for m in thread.messages if m.created_at is not None), key=lambda m: (m.created_at, m.id)
    )
    for message in ordered:
        if _direction(message.direction) == OUTBOUND:
            if pending is None:
                pending = message.created_at
        elif pending is not None:
            samples.append(hours_between(pending, message.created_at))
            pending = None
    return samples


def build_outreach_performance(
    threads: Iterable[MessageThread], workspace: Workspace, since: datetime
) -> dict:
    scoped = scope_threads(threads, workspace)

    sent: dict[str, int] = defaultdict(int)
    responses: dict[str, int] = defaultdict(int)
    samples: list[float] = []
    total_messages = 0
    inbound_total = 0
    campaigns = []

    for thread in scoped:
        samples.extend(response_samples(thread))
        channel_counts: dict[str, int] = defaultdict(int)
        replied = False
        for message in thread.messages:
            total_messages += 1
            channel_counts[message.channel] += 1
            if _direction(message.direction) == INBOUND:
                inbound_total += 1
                responses[message.channel] += 1
                if message.created_at is not None and message.created_at >= since:
                    replied = True
            else:
                sent[message.channel] += 1

        stamps = [m.created_at for m in thread.messages if m.created_at is not None]
        last_activity = max(stamps) if stamps else thread.last_message_at
        campaigns.append(
            {
                "id": thread.id,
                "subject": thread.subject or f"Thread {thread.id}",
                "channel": max(channel_counts, key=channel_counts.get) if channel_counts else None,
                "messages": len(thread.messages),
                "lastMessageAt": to_iso(last_activity),
                "status": "active" if replied else "awaiting response",
                "_sort": (last_activity.timestamp() if last_activity else float("-inf"), thread.id),
            }
        )

    campaigns.sort(key=lambda c: c["_sort"], reverse=True)
    for campaign in campaigns:
        del campaign["_sort"]

    channels = [
        {
            "channel": channel,
            "sent": sent.get(channel, 0),
            "responses": responses.get(channel, 0),
            "responseRate": percentage(responses.get(channel, 0), sent.get(channel, 0)),
        }
        for channel in sorted(set(sent) | set(responses))
    ]
    channels.sort(key=lambda c: c["sent"] + c["responses"], reverse=True)

    return {
        "campaignCount": len(scoped),
        "totalMessages": total_messages,
        "averageResponseHours": average(samples, digits=2),
        "responseRate": percentage(inbound_total, total_messages),
        "averageTouchpoints": round_to(total_messages / len(scoped), 1) if scoped else 0.0,
        "channels": channels,
        "campaigns": campaigns[:CAMPAIGN_LIMIT],
    }
