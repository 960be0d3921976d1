from __future__ import annotations

import argparse
import json
import sys

from rulewarden.app_api.facade import DecisionRegistry
from rulewarden.infra.sqlite.db import get_readonly_connection
from rulewarden.infra.sqlite.registry_record_store_sqlite import RegistryRecordStoreSqlite
from rulewarden.cli._debug_utils import format_predicates, install_registry_debug


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report breaking-change risk of a decision against a prior version")
    parser.add_argument("--db", default="rulewarden.db", help="Registry database path")
    parser.add_argument("--decision", required=True, help="Decision id to evaluate")
    parser.add_argument("--prior-version", required=True, help="Version whose valid code must keep compiling")
    parser.add_argument("--option", help="Option to evaluate instead of the chosen one")
    parser.add_argument("--json", action="store_true", help="Print machine-readable output")
    parser.add_argument("--debug", action="store_true", help="Print registry debug lines")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    install_registry_debug(args)

    conn = None
    try:
        conn = get_readonly_connection(args.db)
        registry = DecisionRegistry.load(RegistryRecordStoreSqlite(conn))
        report = registry.check_breaking(args.decision, args.prior_version, option_id=args.option)
        exit_code = 2 if report.blocking else 0

        if args.json:
            payload = {
                "decision_id": report.decision_id,
                "prior_version": report.prior_version,
                "prior_decision_id": report.prior_decision_id,
                "breaking": report.breaking,
                "violations": sorted(report.violations),
                "exempted": sorted(report.exempted),
                "unexempted": sorted(report.unexempted),
                "exit_code": exit_code,
            }
            print(json.dumps(payload, ensure_ascii=False))
        else:
            print(f"DECISION: {report.decision_id}")
            print(f"PRIOR_VERSION: {report.prior_version} (rule from {report.prior_decision_id or 'none'})")
            print(f"BREAKING: {'YES' if report.breaking else 'NO'}")
            print(f"  violations: {format_predicates(report.violations)}")
            print(f"  exempted: {format_predicates(report.exempted)}")
            print(f"  unexempted: {format_predicates(report.unexempted)}")
            print(f"exit_code={exit_code}")
        return exit_code
    except Exception as exc:
        if args.json:
            print(json.dumps({"decision_id": args.decision, "error": str(exc), "exit_code": 1}, ensure_ascii=False))
        else:
            print(f"ERROR: {exc}")
            print("exit_code=1")
        return 1
    finally:
        if conn is not None:
            conn.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
