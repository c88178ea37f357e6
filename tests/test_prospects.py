"""
Tests for the prospect intelligence builders.
"""

from datetime import timedelta

import pytest

from headhunter.repositories.models import (
    ProspectCampaign,
    ProspectCampaignStep,
    ProspectProfile,
    ProspectSearch,
    ProspectSearchAlert,
    ProspectSignal,
    ResearchNote,
    ResearchTask,
)
from headhunter.snapshot.prospects import (
    build_campaign_studio,
    build_cockpit,
    build_overview,
    build_prospect_intelligence,
    build_research,
    build_talent_profiles,
    normalize_rate,
)
from tests.fixtures import NOW
from tests.fixtures.factories import make_candidate


def signal(signal_id, profile_id=1, hours_ago=1, intent="medium"):
    return ProspectSignal(
        id=signal_id,
        profile_id=profile_id,
        signal_type="job_change",
        title=f"Signal {signal_id}",
        intent_level=intent,
        source="linkedin",
        occurred_at=NOW - timedelta(hours=hours_ago),
    )


def profile(profile_id, candidate=None, days_ago=1, signals=(), **kwargs):
    values = {
        "headline": None,
        "relocation_status": None,
        "compensation_target": None,
        "compensation_currency": "USD",
        "exclusivity_conflict": False,
        "motivators": (),
    }
    values.update(kwargs)
    return ProspectProfile(
        id=profile_id,
        workspace_id=1,
        candidate=candidate,
        aggregated_at=NOW - timedelta(days=days_ago),
        signals=tuple(signals),
        **values,
    )


def campaign(campaign_id, status="active", response=None, conversion=None, steps=()):
    return ProspectCampaign(
        id=campaign_id,
        workspace_id=1,
        name=f"Campaign {campaign_id}",
        status=status,
        target_persona=None,
        response_rate=response,
        conversion_rate=conversion,
        launched_at=None,
        steps=tuple(steps),
    )


def step(step_id, order, channel, sends, replies, conversions=0):
    return ProspectCampaignStep(step_id, 1, order, channel, sends, replies, conversions)


class TestNormalizeRate:
    """Fractions are rescaled, percentages pass through."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0.42, 42.0), (1, 100.0), (35, 35.0), (12.345, 12.3), (0, 0.0), (None, None)],
    )
    def test_normalize(self, value, expected):
        assert normalize_rate(value) == expected


class TestOverviewAndProfiles:
    """Tests for the overview and talent cards."""

    def test_overview(self):
        profiles = [
            profile(1, relocation_status="Open", compensation_target=180000,
                    motivators=("Equity", "remote"), signals=[signal(1, intent="high")]),
            profile(2, relocation_status="open", compensation_target=150000,
                    exclusivity_conflict=True, motivators=("equity",)),
            profile(3),
        ]
        overview = build_overview(profiles)
        assert overview["totalProfiles"] == 3
        assert overview["relocationReadiness"] == {"open": 2, "unknown": 1}
        assert overview["averageCompensationTarget"] == 165000.0
        assert overview["exclusivityConflicts"] == 1
        assert overview["topMotivators"][0] == {"motivator": "equity", "count": 2}
        assert overview["highIntentSignals"] == 1

    def test_talent_profiles_capped_and_newest_first(self):
        profiles = [
            profile(i, days_ago=i, signals=[signal(10 * i + j, i, hours_ago=j) for j in range(1, 7)])
            for i in range(1, 9)
        ]
        cards = build_talent_profiles(profiles)
        assert [c["id"] for c in cards] == [1, 2, 3, 4, 5, 6]
        assert [s["id"] for s in cards[0]["signals"]] == [11, 12, 13, 14]

    def test_display_name(self):
        cards = build_talent_profiles(
            [profile(1, candidate=make_candidate(7, "Ada", "Lovelace")), profile(2, days_ago=2)]
        )
        assert [c["name"] for c in cards] == ["Ada Lovelace", "Prospect 2"]
        assert cards[0]["candidateId"] == 7


class TestCockpit:
    """Tests for saved searches and the signal stream."""

    def test_alerts_and_coverage(self):
        searches = [
            ProspectSearch(1, 1, "CTOs", ("SaaS", "Fintech"), 40, NOW, (
                ProspectSearchAlert(1, 1, "email", "daily", "active", None),
                ProspectSearchAlert(2, 1, "slack", "weekly", "paused", None),
            )),
            ProspectSearch(2, 1, "VPs", ("Fintech",), None, None),
        ]
        cockpit = build_cockpit([], searches)
        assert cockpit["activeAlerts"] == 1
        assert cockpit["industryCoverage"] == {"Fintech": 2, "SaaS": 1}
        assert cockpit["savedSearches"][1]["resultsCount"] == 0

    def test_signal_stream_capped(self):
        profiles = [
            profile(p, signals=[signal(100 * p + i, p, hours_ago=i + p) for i in range(12)])
            for p in (1, 2)
        ]
        stream = build_cockpit(profiles, [])["signalStream"]
        assert len(stream) == 20
        assert stream[0]["id"] == 100
        assert stream[0]["profileId"] == 1


class TestCampaignStudio:
    """Tests for campaign rates and channel roll-ups."""

    def test_rates_and_channels(self):
        campaigns = [
            campaign(1, response=0.4, conversion=0.1, steps=[
                step(2, 2, "LinkedIn", 50, 10),
                step(1, 1, "email", 100, 20, 5),
            ]),
            campaign(2, status="paused", response=20, conversion=None, steps=[
                step(3, 1, "Email", 100, 30),
            ]),
        ]
        studio = build_campaign_studio(campaigns)
        assert studio["activeCampaigns"] == 1
        assert studio["averageResponseRate"] == 30.0
        assert studio["averageConversionRate"] == 10.0
        assert [s["order"] for s in studio["campaigns"][0]["steps"]] == [1, 2]
        assert studio["channelPerformance"] == [
            {"channel": "email", "sends": 200, "replies": 50, "conversions": 5, "replyRate": 25.0},
            {"channel": "linkedin", "sends": 50, "replies": 10, "conversions": 0, "replyRate": 20.0},
        ]

    def test_empty(self):
        studio = build_campaign_studio([])
        assert studio["averageResponseRate"] is None
        assert studio["channelPerformance"] == []


class TestResearch:
    """Tests for research notes, tasks and guardrails."""

    def test_tasks_and_guardrails(self):
        notes = [
            ResearchNote(1, 1, None, "Priya", "Comp intel", "restricted", NOW - timedelta(days=1),
                         NOW - timedelta(days=10)),
            ResearchNote(2, 1, None, "Tom", "Org chart", "team", NOW + timedelta(days=5),
                         NOW - timedelta(days=2)),
        ]
        tasks = [
            ResearchTask(1, 1, None, "Call refs", "open", "high", NOW - timedelta(days=1), None, None),
            ResearchTask(2, 1, None, "Map team", "in_progress", None, NOW + timedelta(days=1), None, None),
            ResearchTask(3, 1, None, "Old", "done", None, NOW - timedelta(days=9), None, None),
        ]
        research = build_research(notes, tasks, NOW)
        assert research["openTasks"] == 2
        assert research["overdueTasks"] == 1
        assert research["guardrails"] == {"restrictedNotes": 1, "retentionReviewsDue": 1}
        assert [e["type"] for e in research["complianceLog"]] == [
            "retention_review",
            "retention_review",
            "restricted_note",
        ]


def test_build_prospect_intelligence_sections():
    report = build_prospect_intelligence([], [], [], [], [], NOW)
    assert set(report) == {"overview", "talentProfiles", "cockpit", "campaignStudio", "research"}
    assert report["overview"]["totalProfiles"] == 0
