"""
Tests for the wellbeing tracker.
"""

from datetime import timedelta

import pytest

from headhunter.repositories.models import AvailabilityWindow, WellbeingLog, WorkspaceMember
from headhunter.snapshot.wellbeing import build_wellbeing, burnout_risk, wellbeing_score
from tests.fixtures import NOW
from tests.fixtures.factories import make_app


def log(log_id, energy=None, stress=None, score=None, days_ago=1):
    return WellbeingLog(
        id=log_id,
        workspace_id=1,
        member_id=1,
        energy_score=energy,
        stress_score=stress,
        wellbeing_score=score,
        logged_at=NOW - timedelta(days=days_ago),
        notes=None,
    )


def downtime(window_id):
    return AvailabilityWindow(
        id=window_id,
        workspace_id=1,
        day_of_week=5,
        start_time="15:00",
        end_time="17:00",
        availability_type="downtime",
    )


def members(n):
    return [
        WorkspaceMember(
            id=i, workspace_id=1, user_id=None, name=None, email=None, role=None, status="active"
        )
        for i in range(1, n + 1)
    ]


class TestBurnoutRisk:
    """Tests for burnout_risk thresholds."""

    @pytest.mark.parametrize(
        "stress,workload,downtime_blocks,expected",
        [
            (8, 5, 3, "high"),
            (7, 5, 3, "high"),
            (3, 16, 3, "high"),
            (3, 5, 1, "high"),
            (5, 5, 3, "medium"),
            (3, 13, 3, "medium"),
            (4.9, 12, 2, "low"),
            (None, 0, 2, "low"),
        ],
    )
    def test_thresholds(self, stress, workload, downtime_blocks, expected):
        assert burnout_risk(stress, workload, downtime_blocks) == expected


class TestWellbeingScore:
    """Tests for wellbeing_score."""

    def test_latest_explicit_score_wins(self):
        logs = [log(1, score=40, days_ago=3), log(2, score=82, days_ago=1)]
        assert wellbeing_score(logs) == 82

    def test_formula_when_latest_has_no_score(self):
        """energy 7, stress 4: 70 - 24 + 55 = 101, clamped to 100."""
        assert wellbeing_score([log(1, energy=7, stress=4)]) == 100.0

    def test_formula_mid_range(self):
        """energy 3, stress 8: 30 - 48 + 55 = 37."""
        assert wellbeing_score([log(1, energy=3, stress=8)]) == 37.0

    def test_no_logs(self):
        assert wellbeing_score([]) is None


class TestBuildWellbeing:
    """Tests for build_wellbeing."""

    def test_high_stress_is_high_risk(self):
        """Average stress of 8 is high risk even with downtime booked."""
        report = build_wellbeing(
            [log(1, energy=5, stress=8)],
            [make_app(1)],
            members(2),
            [downtime(1), downtime(2)],
            NOW,
        )
        assert report["burnoutRisk"] == "high"
        assert report["averages"] == {"energy": 5.0, "stress": 8.0}
        assert report["checkIns"] == 1
        assert any("Stress" in r for r in report["reminders"])

    def test_workload_per_member(self):
        apps = [make_app(i) for i in range(1, 28)] + [make_app(99, "hired")]
        report = build_wellbeing([], apps, members(2), [downtime(1), downtime(2)], NOW)
        assert report["workloadPerMember"] == 13.5
        assert report["burnoutRisk"] == "medium"
        assert report["score"] is None

    @pytest.mark.parametrize(
        "stresses,expected_risk",
        [
            ([6.9, 7.0], "medium"),
            ([7.0, 7.1], "high"),
            ([4.9, 5.0], "low"),
        ],
    )
    def test_stress_threshold_uses_unrounded_mean(self, stresses, expected_risk):
        """6.95 shows as 7.0 in the payload but stays below the high-risk line."""
        logs = [log(i, energy=5, stress=s) for i, s in enumerate(stresses, start=1)]
        report = build_wellbeing(logs, [], members(1), [downtime(1), downtime(2)], NOW)
        assert report["burnoutRisk"] == expected_risk

    def test_rounded_stress_on_the_line(self):
        logs = [log(1, energy=5, stress=6.9), log(2, energy=5, stress=7.0)]
        report = build_wellbeing(logs, [], members(1), [downtime(1), downtime(2)], NOW)
        assert report["averages"]["stress"] == 7.0
        assert report["burnoutRisk"] == "medium"

    @pytest.mark.parametrize(
        "open_apps,expected_risk,shown",
        [
            (376, "high", 15.0),
            (375, "medium", 15.0),
            (301, "medium", 12.0),
            (300, "low", 12.0),
        ],
    )
    def test_workload_threshold_uses_unrounded_ratio(self, open_apps, expected_risk, shown):
        """25 recruiters: 376 open is 15.04 per head, over the line though it shows as 15.0."""
        apps = [make_app(i) for i in range(1, open_apps + 1)]
        report = build_wellbeing([], apps, members(25), [downtime(1), downtime(2)], NOW)
        assert report["workloadPerMember"] == shown
        assert report["burnoutRisk"] == expected_risk

    def test_reminders_without_logs_or_downtime(self):
        report = build_wellbeing([], [], [], [], NOW)
        assert report["burnoutRisk"] == "high"
        assert report["downtimeBlocks"] == 0
        assert len(report["reminders"]) == 2
        assert len(report["reflectionPrompts"]) == 3

    def test_stale_check_in_reminder(self):
        report = build_wellbeing(
            [log(1, energy=8, stress=2, days_ago=9)], [], members(1), [downtime(1), downtime(2)], NOW
        )
        assert report["burnoutRisk"] == "low"
        assert report["lastCheckInAt"] == "2024-06-03T15:00:00Z"
        assert any("over a week" in r for r in report["reminders"])
