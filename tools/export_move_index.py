#!/usr/bin/env python3
"""
Write the reference move index table to JSON, or check an existing one.

Usage:
    python tools/export_move_index.py write models/all_moves.json
    python tools/export_move_index.py check models/all_moves.json
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from policy_engine.policy.move_index import REFERENCE_POLICY_SIZE, MoveIndexTable


def main():
    parser = argparse.ArgumentParser(description="Export or check a move index table")
    parser.add_argument("command", choices=["write", "check"])
    parser.add_argument("path", type=Path)
    args = parser.parse_args()

    if args.command == "write":
        table = MoveIndexTable.reference()
        table.to_json(args.path)
        print(f"Wrote {len(table)} moves to {args.path}")
        return

    try:
        table = MoveIndexTable.from_json(args.path)
    except ValueError as e:
        print(f"Invalid table: {e}")
        sys.exit(1)

    reference = MoveIndexTable.reference()
    same_order = dict(table.move_to_index) == dict(reference.move_to_index)
    print(f"{args.path}: {len(table)} moves (reference catalog: {REFERENCE_POLICY_SIZE})")
    print(f"Matches reference ordering: {same_order}")
    if len(table) != REFERENCE_POLICY_SIZE:
        sys.exit(1)


if __name__ == "__main__":
    main()
