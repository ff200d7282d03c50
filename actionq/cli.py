"""
Command-line entry points.

    actionq-execute [--record-id ID] [--db PATH] FILE
        Apply the actions in an analysis result (or a bare JSON action list)
        read from FILE ("-" for stdin) and print the batch report as JSON.

    actionq-init-db [--db PATH]
        Create the SQLite schema (idempotent).
"""

from __future__ import annotations

import argparse
import json
import os
import sqlite3
import sys
from pathlib import Path

from actionq.actions.analysis import parse_analysis_result
from actionq.actions.errors import PersistenceError
from actionq.actions.executor import build_driver
from actionq.config import ENV
from actionq.infrastructure.database import init_database, reset_pool
from actionq.infrastructure.env import ensure_env_loaded
from actionq.observability.logging import configure_logging, get_logger
from actionq.storage.repository import SQLiteRecordStore

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ACTION_FAILURES = 1
EXIT_BAD_INPUT = 2


def _use_database(db_path: str | None) -> None:
    if db_path:
        os.environ["ACTIONQ_DB_PATH"] = db_path
        reset_pool()


def _read_payload(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def build_execute_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="actionq-execute",
        description="Apply analysis-suggested actions and report per-action outcomes.",
    )
    parser.add_argument("file", help='analysis result or action list JSON ("-" for stdin)')
    parser.add_argument("--record-id", type=int, help="subject record the analysis concerns")
    parser.add_argument("--db", help="SQLite database path (default: ACTIONQ_DB_PATH)")
    parser.add_argument(
        "--save-analysis",
        action="store_true",
        help="also store the analysis summary for --record-id",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="exit with status 1 when any action fails",
    )
    parser.add_argument("--log-level", help="override ACTIONQ_LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_execute_parser().parse_args(argv)

    ensure_env_loaded()
    configure_logging(args.log_level)
    _use_database(args.db)

    try:
        result = parse_analysis_result(_read_payload(args.file))
    except (OSError, ValueError) as e:
        logger.error("Could not read analysis result from %s: %s", args.file, e)
        return EXIT_BAD_INPUT

    try:
        db_path = init_database()
    except (sqlite3.Error, OSError) as e:
        logger.error("Could not initialize database: %s", e)
        return EXIT_BAD_INPUT
    logger.info("Executing against %s (env: %s)", db_path, ENV)
    store = SQLiteRecordStore()

    if args.save_analysis:
        if args.record_id is None:
            logger.error("--save-analysis requires --record-id")
            return EXIT_BAD_INPUT
        try:
            store.save_analysis_result(
                args.record_id,
                result.analysis or result.summary,
                result.suggestions,
                result.confidence,
            )
        except PersistenceError as e:
            logger.error("Could not store analysis for record %s: %s", args.record_id, e)
            return EXIT_BAD_INPUT

    driver = build_driver(store=store)
    report = driver.execute(result.actions, record_id=args.record_id)

    print(json.dumps(report.to_dict(), indent=2))

    if args.strict and report.failed:
        return EXIT_ACTION_FAILURES
    return EXIT_OK


def init_db_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="actionq-init-db", description="Create the ActionQ schema.")
    parser.add_argument("--db", help="SQLite database path (default: ACTIONQ_DB_PATH)")
    args = parser.parse_args(argv)

    ensure_env_loaded()
    _use_database(args.db)

    try:
        db_path = init_database()
    except (sqlite3.Error, OSError) as e:
        logger.error("Could not initialize database: %s", e)
        return EXIT_BAD_INPUT
    print(f"Database ready: {db_path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
