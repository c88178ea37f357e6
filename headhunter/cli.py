"""
Headhunter snapshot CLI

Usage:
    python -m headhunter init-db                       # Create the database schema
    python -m headhunter snapshot                      # Snapshot of the default workspace
    python -m headhunter snapshot --workspace 3 --lookback 14 --pretty
    python -m headhunter --db /tmp/hh.db snapshot      # Explicit database path
"""

import argparse
import json
import sys

from headhunter import config
from headhunter.errors import NotFoundError
from headhunter.observability import configure_logging
from headhunter.repositories import SnapshotRepository
from headhunter.snapshot import HeadhunterSnapshotService


def cmd_init_db(args, repository: SnapshotRepository) -> int:
    """Create tables and indexes."""
    repository.initialize()
    print(f"Initialized {repository.db_path}")
    return 0


def cmd_snapshot(args, repository: SnapshotRepository) -> int:
    """Print a dashboard snapshot as JSON."""
    service = HeadhunterSnapshotService(repository)
    try:
        snapshot = service.get_dashboard_snapshot(
            workspace_id=args.workspace, lookback_days=args.lookback
        )
    except NotFoundError as exc:
        print(f"Not found: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(snapshot.to_dict(), indent=2 if args.pretty else None, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="headhunter", description="Headhunter dashboard snapshot engine"
    )
    parser.add_argument("--db", help="SQLite database path (default: HEADHUNTER_DB or app home)")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # init-db
    subparsers.add_parser("init-db", help="Create the database schema")

    # snapshot
    p = subparsers.add_parser("snapshot", help="Build a dashboard snapshot")
    p.add_argument("--workspace", type=int, help="Workspace id (default: most recent agency)")
    p.add_argument("--lookback", type=int, help="Lookback window in days (7-120)")
    p.add_argument("--pretty", action="store_true", help="Indent JSON output")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    repository = SnapshotRepository(args.db)

    commands = {
        "init-db": cmd_init_db,
        "snapshot": cmd_snapshot,
    }

    return commands[args.command](args, repository)


if __name__ == "__main__":
    sys.exit(main())
