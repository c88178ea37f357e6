"""
Pass-On Network Builder - referrals of rejected or withdrawn candidates.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import datetime

from headhunter.numbers import round_to, to_iso
from headhunter.repositories.models import Application, Candidate

PASS_ON_STATUSES = frozenset({"rejected", "withdrawn"})
CANDIDATE_LIMIT = 12
AWAITING = re.compile(r"awaiting", re.IGNORECASE)


def _sort_key(stamp: datetime | None, record_id: int) -> tuple[float, int]:
    return (stamp.timestamp() if stamp else float("-inf"), record_id)


def is_open_referral(next_step: str | None) -> bool:
    return not next_step or bool(AWAITING.search(next_step))


def build_pass_on_network(
    applications: Iterable[Application], candidates: Mapping[int, Candidate]
) -> dict:
    entries = []
    for app in applications:
        if app.status not in PASS_ON_STATUSES:
            continue
        candidate = candidates.get(app.applicant_id)
        if candidate is None:
            continue
        terms = app.pass_on
        entries.append(
            {
                "applicationId": app.id,
                "candidateId": candidate.id,
                "name": candidate.name,
                "headline": candidate.headline,
                "status": app.status,
                "target": terms.target,
                "nextStep": terms.next_step,
                "sharedAt": to_iso(terms.shared_at),
                "revenueShare": round_to(terms.revenue_share, 2),
                "_sort": _sort_key(terms.shared_at or app.updated_at, app.id),
            }
        )

    entries.sort(key=lambda e: e["_sort"], reverse=True)
    for entry in entries:
        del entry["_sort"]

    return {
        "totalCandidates": len(entries),
        "openReferrals": sum(1 for e in entries if is_open_referral(e["nextStep"])),
        "projectedRevenueShare": round_to(sum(e["revenueShare"] or 0.0 for e in entries), 2),
        "candidates": entries[:CANDIDATE_LIMIT],
    }
