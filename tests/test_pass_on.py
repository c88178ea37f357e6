"""
Tests for the pass-on network builder.
"""

from datetime import timedelta

import pytest

from headhunter.repositories.models import PassOnTerms
from headhunter.snapshot.pass_on import build_pass_on_network, is_open_referral
from tests.fixtures import NOW
from tests.fixtures.factories import make_app, make_candidate


class TestOpenReferral:
    """Tests for is_open_referral."""

    @pytest.mark.parametrize(
        "next_step,expected",
        [
            (None, True),
            ("", True),
            ("Awaiting partner intro", True),
            ("still AWAITING reply", True),
            ("Intro call booked", False),
        ],
    )
    def test_open_when_empty_or_awaiting(self, next_step, expected):
        assert is_open_referral(next_step) is expected


class TestPassOnNetwork:
    """Tests for build_pass_on_network."""

    def test_only_closed_applications_with_candidates(self):
        candidates = {1: make_candidate(1, "Grace", "Hopper"), 2: make_candidate(2)}
        apps = [
            make_app(
                1,
                "rejected",
                applicant_id=1,
                pass_on=PassOnTerms(
                    target="Orbit Talent",
                    next_step="Awaiting partner intro",
                    shared_at=NOW - timedelta(days=4),
                    revenue_share=4500,
                ),
            ),
            make_app(
                2,
                "withdrawn",
                applicant_id=2,
                updated_at=NOW - timedelta(days=10),
                pass_on=PassOnTerms(next_step="Intro done", revenue_share=1000.5),
            ),
            make_app(3, "interview", applicant_id=1),
            make_app(4, "rejected", applicant_id=99),
        ]
        network = build_pass_on_network(apps, candidates)

        assert network["totalCandidates"] == 2
        assert network["openReferrals"] == 1
        assert network["projectedRevenueShare"] == 5500.5
        first = network["candidates"][0]
        assert first["name"] == "Grace Hopper"
        assert first["target"] == "Orbit Talent"
        assert first["sharedAt"] == "2024-06-08T15:00:00Z"

    def test_candidates_capped(self):
        candidates = {i: make_candidate(i) for i in range(1, 20)}
        apps = [make_app(i, "rejected", applicant_id=i) for i in range(1, 20)]
        network = build_pass_on_network(apps, candidates)
        assert network["totalCandidates"] == 19
        assert len(network["candidates"]) == 12
        assert network["openReferrals"] == 19

    def test_empty(self):
        assert build_pass_on_network([], {}) == {
            "totalCandidates": 0,
            "openReferrals": 0,
            "projectedRevenueShare": 0.0,
            "candidates": [],
        }
