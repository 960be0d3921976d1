from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rulewarden.app_api.facade import DecisionRegistry
from rulewarden.app_api.seed_config import load_registry_seed
from rulewarden.infra.sqlite.db import get_connection
from rulewarden.infra.sqlite.registry_record_store_sqlite import RegistryRecordStoreSqlite
from rulewarden.cli._debug_utils import _dbg, install_registry_debug


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a registry seed file and persist it to SQLite")
    parser.add_argument("--seed", required=True, help="Path to registry seed JSON")
    parser.add_argument("--db", default="rulewarden.db", help="Registry database path")
    parser.add_argument("--json", action="store_true", help="Print machine-readable summary")
    parser.add_argument("--debug", action="store_true", help="Print registry debug lines")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    install_registry_debug(args)

    conn = None
    try:
        seed = load_registry_seed(Path(args.seed))
        _dbg(args, f"seed versions={len(seed.versions)} decisions={len(seed.decisions)}")
        registry = DecisionRegistry.from_seed(seed)

        conn = get_connection(args.db)
        registry.save(RegistryRecordStoreSqlite(conn))

        constructs = registry.store.constructs()
        if args.json:
            payload = {
                "db_path": args.db,
                "versions": len(seed.versions),
                "decisions": len(seed.decisions),
                "constructs": constructs,
                "exit_code": 0,
            }
            print(json.dumps(payload, ensure_ascii=False))
        else:
            print(f"DB: {args.db}")
            print(f"versions: {len(seed.versions)}")
            print(f"decisions: {len(seed.decisions)}")
            for construct in constructs:
                current = registry.current_effective(construct)
                current_id = current.decision_id if current is not None else "-"
                print(f"  {construct}: current={current_id}")
            print("exit_code=0")
        return 0
    except Exception as exc:
        if args.json:
            print(json.dumps({"db_path": args.db, "error": str(exc), "exit_code": 1}, ensure_ascii=False))
        else:
            print(f"ERROR: {exc}")
            print("exit_code=1")
        return 1
    finally:
        if conn is not None:
            conn.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
