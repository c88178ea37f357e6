"""
Tests for the headhunter CLI.
"""

import json
import logging

import pytest

from headhunter.cli import build_parser, main
from tests.fixtures import fixture_conn, seed_skyline_scenario


@pytest.fixture(autouse=True)
def restore_root_logging():
    """main() reconfigures the root logger; put the original handlers back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParser:
    """Tests for argument parsing."""

    def test_snapshot_options(self):
        args = build_parser().parse_args(["snapshot", "--workspace", "3", "--lookback", "14"])
        assert args.command == "snapshot"
        assert args.workspace == 3
        assert args.lookback == 14
        assert args.pretty is False

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    """Tests for init-db and snapshot."""

    def test_init_db_creates_schema(self, tmp_path, capsys):
        db = tmp_path / "cli.db"
        assert main(["--db", str(db), "--log-level", "WARNING", "init-db"]) == 0
        assert db.exists()
        assert "Initialized" in capsys.readouterr().out

    def test_snapshot_prints_json(self, tmp_path, capsys):
        db = tmp_path / "cli.db"
        main(["--db", str(db), "--log-level", "WARNING", "init-db"])
        with fixture_conn(db) as conn:
            ids = seed_skyline_scenario(conn)
        capsys.readouterr()

        code = main(
            ["--db", str(db), "--log-level", "WARNING", "snapshot",
             "--workspace", str(ids["skyline"]), "--lookback", "200"]
        )
        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["meta"]["workspaceId"] == ids["skyline"]
        assert payload["meta"]["lookbackDays"] == 120
        assert payload["workspaceSummary"]["name"] == "Skyline Search"

    def test_unknown_workspace_returns_1(self, tmp_path, capsys):
        db = tmp_path / "cli.db"
        main(["--db", str(db), "--log-level", "WARNING", "init-db"])
        code = main(["--db", str(db), "--log-level", "WARNING", "snapshot", "--workspace", "42"])
        assert code == 1
        assert "Not found" in capsys.readouterr().err
