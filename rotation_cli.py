#!/usr/bin/env python3
"""
Print a doubles rotation for a roster file.

  python rotation_cli.py roster.json --seed 7
  python rotation_cli.py roster.json --forbid-repeat-matchups --attempts 120

roster.json:
  {"players": [{"name": "A", "level": 4, "gender": "M"}, ...],
   "present": ["A", ...], "courts": 2, "rounds": 5, "priority_mode": "level",
   "fixed_pairs": [["A", "B"]], "forbidden_pairs": [["C", "D"]]}
"""

import argparse
import random
import sys

from doubles_scheduler import ATTEMPTS, SchedulingError, format_schedule
from roster import load_roster


def main(argv=None):
    parser = argparse.ArgumentParser(description="Doubles court rotation scheduler")
    parser.add_argument("roster", help="roster JSON (players, present, pairs, courts, rounds)")
    parser.add_argument("--seed", type=int, default=None, help="overrides the roster's seed")
    parser.add_argument("--attempts", type=int, default=ATTEMPTS, help="candidates tried per round")
    parser.add_argument("--forbid-repeat-matchups", action="store_true",
                        help="drop candidates that repeat any earlier four-player matchup")
    args = parser.parse_args(argv)

    try:
        request = load_roster(args.roster)
        seed = args.seed if args.seed is not None else request.seed
        schedule = request.generate(
            attempts=args.attempts,
            repeat_matchups="forbid" if args.forbid_repeat_matchups else "penalize",
            rng=random.Random(seed),
        )
    except (OSError, SchedulingError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(format_schedule(schedule))
    return 0


if __name__ == "__main__":
    sys.exit(main())
