from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from bizdesk.application.container import build_container
from bizdesk.config import get_app_paths, load_settings
from bizdesk.logging_config import setup_logging


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bizdesk", description="Sales, purchases and stock back office.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create or migrate the database")
    sub.add_parser("db-check", help="report database connectivity")

    summary = sub.add_parser("summary", help="print the dashboard summary of a user")
    summary.add_argument("user_id", type=int)

    export = sub.add_parser("export-report", help="write the dashboard workbook of a user")
    export.add_argument("user_id", type=int)
    export.add_argument("path", type=Path)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)

    paths = get_app_paths()
    settings = load_settings()
    setup_logging(paths.logs_dir, level=logging.INFO)
    container = build_container(paths.db_path, settings)

    if args.command == "init-db":
        print(f"Database ready at {paths.db_path}")
        return 0

    if args.command == "db-check":
        report = container.operations.check_database()
        print(json.dumps(asdict(report), indent=2))
        return 0 if report.success else 1

    if args.command == "summary":
        result = container.stock_actions.get_user_dashboard_summary(args.user_id)
        print(json.dumps(result.as_dict(), default=lambda o: asdict(o), indent=2))
        return 0 if result.success else 1

    result = container.stock_actions.export_dashboard_report(args.user_id, args.path)
    print(result.message)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
