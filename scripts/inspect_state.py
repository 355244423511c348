from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mint_detector.state import StateStore


def describe(store: StateStore, last: int = 0) -> list[str]:
    cursor = store.cursor
    lines = [
        f"state file: {store.path}",
        f"last signature: {cursor.last_signature or '-'}",
        f"processed signatures: {len(cursor.processed_signatures)}",
    ]
    if last > 0:
        lines.extend(f"  {s}" for s in list(cursor.processed_signatures)[-last:])
    return lines


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Inspect or edit the detector's state.json")
    p.add_argument("--state-file", default="state.json", help="Path to the state file (default: state.json)")
    p.add_argument("--last", type=int, default=0, help="Also list the N most recently processed signatures")
    p.add_argument("--forget", action="append", default=[], metavar="SIG", help="Drop a signature so it is processed again")
    p.add_argument("--reset", action="store_true", help="Clear the cursor and the processed set")
    args = p.parse_args(argv)

    path = Path(args.state_file)
    store = StateStore(path)
    store.load()

    changed = False
    if args.reset:
        store.cursor.last_signature = None
        store.cursor.processed_signatures.clear()
        changed = True
    for sig in args.forget:
        if store.forget(sig):
            changed = True
        else:
            print(f"Not in processed set: {sig}", file=sys.stderr)
    if changed and not store.save():
        print(f"Failed to write {path}", file=sys.stderr)
        return 1

    print("\n".join(describe(store, last=args.last)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
