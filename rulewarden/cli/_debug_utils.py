from __future__ import annotations

import argparse

from rulewarden.core.store.decision_store import set_registry_debug


def _debug_enabled(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "debug", False))


def _dbg(args: argparse.Namespace, msg: str) -> None:
    if _debug_enabled(args):
        print(f"[debug] {msg}")


def install_registry_debug(args: argparse.Namespace) -> None:
    if _debug_enabled(args):
        set_registry_debug(lambda msg: print(f"[debug] {msg}"))
    else:
        set_registry_debug(None)


def format_predicates(classes) -> str:
    items = sorted(classes)
    return ",".join(items) if items else "-"
