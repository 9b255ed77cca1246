"""
Main entry point for running the policy engine as a UCI engine.

Usage:
    python -m policy_engine.uci models/maia_rapid.onnx --moves models/all_moves.json
"""

import argparse

from policy_engine.engine.config import EngineConfig
from policy_engine.engine.handle import EngineHandle
from policy_engine.uci.interface import UCIEngine


def main():
    parser = argparse.ArgumentParser(
        description="Run the policy engine over UCI",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("model", help="Policy network (.onnx or .pt)")
    parser.add_argument("--moves", default=None, help="Move index JSON (default: reference catalog)")
    parser.add_argument("--elo", type=int, default=1500, help="Engine rating")
    parser.add_argument("--opponent-elo", type=int, default=1600, help="Opponent rating")
    parser.add_argument("--no-book", action="store_true", help="Disable the opening book")
    parser.add_argument("--quiet", action="store_true", help="Log at INFO instead of DEBUG")
    args = parser.parse_args()

    config = EngineConfig(
        model_path=args.model,
        move_index_path=args.moves,
        engine_elo=args.elo,
        opponent_elo=args.opponent_elo,
        use_opening_book=not args.no_book,
    )
    engine = UCIEngine(EngineHandle.from_config(config), config, debug=not args.quiet)
    engine.run()


if __name__ == "__main__":
    main()
