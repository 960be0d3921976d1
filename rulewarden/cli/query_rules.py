from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from rulewarden.app_api.dto import RegistryQuery
from rulewarden.app_api.facade import DecisionRegistry
from rulewarden.app_api.record_codec import decision_to_record
from rulewarden.core.domain.errors import NoRuleDefined
from rulewarden.core.domain.models import Rule
from rulewarden.infra.sqlite.db import get_readonly_connection
from rulewarden.infra.sqlite.registry_record_store_sqlite import RegistryRecordStoreSqlite
from rulewarden.cli._debug_utils import _dbg, format_predicates, install_registry_debug


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the effective rule and decision history for a construct")
    parser.add_argument("--db", default="rulewarden.db", help="Registry database path")
    parser.add_argument("--construct", required=True, help="Construct identifier")
    parser.add_argument("--version", help="Language version to resolve the effective rule at")
    parser.add_argument(
        "--mode",
        choices=["rule", "history", "both"],
        default="both",
        help="What to print",
    )
    parser.add_argument("--require-rule", action="store_true", help="Exit 2 when no rule is defined")
    parser.add_argument("--json", action="store_true", help="Print machine-readable output")
    parser.add_argument("--debug", action="store_true", help="Print registry debug lines")
    return parser.parse_args(argv)


def _rule_payload(rule: Rule) -> dict[str, Any]:
    return {
        "construct": rule.construct,
        "decision_id": rule.decision_id,
        "version": rule.version,
        "option_id": rule.option_id,
        "permits": sorted(rule.permits),
        "forbids": sorted(rule.forbids),
        "exempted": sorted(rule.exempted),
    }


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    install_registry_debug(args)

    conn = None
    try:
        query = RegistryQuery(
            construct=args.construct,
            version=args.version,
            mode=args.mode,
            require_rule=args.require_rule,
        )
        query.validate()

        conn = get_readonly_connection(args.db)
        registry = DecisionRegistry.load(RegistryRecordStoreSqlite(conn))
        _dbg(args, f"loaded decisions={len(registry.store.all())}")

        rule = None
        missing = False
        if query.version is not None and query.mode in ("rule", "both"):
            try:
                rule = registry.effective_rule(query.construct, query.version, required=True)
            except NoRuleDefined:
                missing = True
        history = registry.history(query.construct) if query.mode in ("history", "both") else []
        exit_code = 2 if (missing and query.require_rule) else 0

        if args.json:
            payload: dict[str, Any] = {
                "construct": query.construct,
                "version": query.version,
                "rule": _rule_payload(rule) if rule is not None else None,
                "history": [
                    decision_to_record(d, registry.resolver.depends_on(d.decision_id)) for d in history
                ],
                "exit_code": exit_code,
            }
            print(json.dumps(payload, ensure_ascii=False))
        else:
            print(f"CONSTRUCT: {query.construct}")
            if query.version is not None and query.mode in ("rule", "both"):
                print(f"VERSION: {query.version}")
                if rule is None:
                    print("RULE: none")
                else:
                    print(f"RULE: {rule.decision_id} option={rule.option_id} (from {rule.version})")
                    print(f"  forbids: {format_predicates(rule.forbids)}")
                    print(f"  exempted: {format_predicates(rule.exempted)}")
            if query.mode in ("history", "both"):
                print("HISTORY:")
                for decision in history:
                    chosen = decision.chosen_option or "-"
                    print(
                        f"  {decision.version} {decision.decision_id} "
                        f"{decision.status.value} chosen={chosen}"
                    )
            print(f"exit_code={exit_code}")
        return exit_code
    except Exception as exc:
        if args.json:
            print(json.dumps({"construct": args.construct, "error": str(exc), "exit_code": 1}, ensure_ascii=False))
        else:
            print(f"ERROR: {exc}")
            print("exit_code=1")
        return 1
    finally:
        if conn is not None:
            conn.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
