"""
Tests for configuration loading.
"""

import logging

from headhunter import config, paths
from headhunter.config import IntelligenceTargets, load_intelligence_targets


class TestIntelligenceTargets:
    """Tests for load_intelligence_targets."""

    def test_shipped_config_matches_defaults(self):
        assert load_intelligence_targets() == IntelligenceTargets()

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="headhunter.config"):
            targets = load_intelligence_targets(tmp_path / "absent.yaml")
        assert targets == IntelligenceTargets()
        assert "not found" in caplog.text

    def test_overrides_and_unknown_keys(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text(
            "targets:\n"
            "  pipeline_value_per_mandate: 200000\n"
            "  touchpoint_floor: '25'\n"
            "  retention_bonus: 3\n"
        )
        targets = load_intelligence_targets(path)
        assert targets.pipeline_value_per_mandate == 200000.0
        assert targets.touchpoint_floor == 25
        assert targets.offer_conversion_factor == 0.65

    def test_flat_mapping_accepted(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text("offer_conversion_factor: 0.5\n")
        assert load_intelligence_targets(path).offer_conversion_factor == 0.5

    def test_invalid_value_warns_and_keeps_default(self, tmp_path, caplog):
        path = tmp_path / "targets.yaml"
        path.write_text("targets:\n  placement_coverage: lots\n")
        with caplog.at_level(logging.WARNING, logger="headhunter.config"):
            targets = load_intelligence_targets(path)
        assert targets.placement_coverage == 0.75
        assert "placement_coverage" in caplog.text

    def test_malformed_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text("targets: [unclosed\n")
        assert load_intelligence_targets(path) == IntelligenceTargets()

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text("")
        assert load_intelligence_targets(path) == IntelligenceTargets()


class TestPaths:
    """Tests for path resolution."""

    def test_db_path_under_app_home(self, tmp_path):
        assert paths.db_path() == (tmp_path / "home" / "data" / "headhunter.db").resolve()

    def test_db_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HEADHUNTER_DB", str(tmp_path / "custom.db"))
        assert paths.db_path() == (tmp_path / "custom.db").resolve()


def test_lookback_bounds():
    assert config.MIN_LOOKBACK_DAYS <= config.DEFAULT_LOOKBACK_DAYS <= config.MAX_LOOKBACK_DAYS
