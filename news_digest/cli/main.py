from __future__ import annotations

import argparse
import sys
from pathlib import Path

from news_digest.config import get_settings
from news_digest.workers import configure_logging
from news_digest.workers import rules as rules_worker
from news_digest.workers.digest import run as run_digest


def _add_run(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("run", help="Fetch, filter and send today's digest")
    parser.add_argument("--rules", type=Path, default=None, help="Override filter rules file path")
    parser.add_argument("--dry-run", action="store_true", help="Build the digest without sending it")
    parser.add_argument("--archive", action=argparse.BooleanOptionalAction, default=True, help="Write the digest text to the output directory")
    parser.add_argument("--log-dir", type=Path, default=None, help="Override run log directory")


def _add_rules_show(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("rules-show", help="Print the active filter rules")
    parser.add_argument("--rules", type=Path, default=None, help="Override filter rules file path")


def _add_rules_validate(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("rules-validate", help="Validate the filter rules file")
    parser.add_argument("--rules", type=Path, default=None, help="Override filter rules file path")


def _add_rules_check(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("rules-check", help="Score sample items from a JSON file")
    parser.add_argument("samples", type=Path, help="JSON list of {title, summary} items")
    parser.add_argument("--rules", type=Path, default=None, help="Override filter rules file path")


def _add_rules_add(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("rules-add", help="Add a city, keyword or exclude word to the rules file")
    parser.add_argument("kind", choices=rules_worker.RULE_KINDS, help="Which rule group to extend")
    parser.add_argument("value", type=str, help="Value to add")
    parser.add_argument("--rules", type=Path, default=None, help="Override filter rules file path")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="news-digest", description="City news digest pipeline controller")
    parser.add_argument("--log-level", type=str, default=None, help="Console log level (default from LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_run(subparsers)
    _add_rules_show(subparsers)
    _add_rules_validate(subparsers)
    _add_rules_check(subparsers)
    _add_rules_add(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    command = args.command
    if command == "run":
        try:
            run_digest(rules_path=args.rules, dry_run=args.dry_run, archive=args.archive, log_dir=args.log_dir)
        except Exception as exc:
            print(f"digest run failed: {exc}", file=sys.stderr)
            return 1
    elif command == "rules-show":
        print(rules_worker.show(args.rules))
    elif command == "rules-validate":
        result = rules_worker.validate(args.rules)
        if result.valid:
            print("rules OK")
        else:
            for error in result.errors:
                print(f"- {error}")
            return 1
    elif command == "rules-check":
        try:
            verdicts = rules_worker.check(args.samples, args.rules)
        except ValueError as exc:
            print(f"rules check failed: {exc}", file=sys.stderr)
            return 1
        print(rules_worker.format_verdicts(verdicts))
    elif command == "rules-add":
        try:
            added = rules_worker.add(args.kind, args.value, args.rules)
        except ValueError as exc:
            print(f"rules update failed: {exc}", file=sys.stderr)
            return 1
        print(f"added {args.kind}: {args.value}" if added else f"{args.kind} already present: {args.value}")
    else:
        parser.error(f"Unknown command: {command}")
    return 0


__all__ = ["build_parser", "main"]


if __name__ == "__main__":
    sys.exit(main())
