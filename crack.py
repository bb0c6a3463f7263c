# crack.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from configuration import save_config
from cracker import Budget, SearchConfig, SearchController, SearchSpace
from debug import Debug
from errors import InvalidSearchSpace
from scoring import NgramModel, NgramScorer
from utilities import agreement, group_blocks, preprocess_message

debug = Debug()
debug.toggle_global(False)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Recover rotor order, window, reflector and plugboard "
                    "from ciphertext alone."
    )
    p.add_argument("ciphertext", nargs="?", help="Ciphertext (non-letters are ignored).")
    p.add_argument("--input", metavar="FILE", type=Path, help="Read the ciphertext from FILE.")
    p.add_argument("--rotors", nargs="+", default=["I", "II", "III", "IV", "V"], help="Rotor pool. Default: I II III IV V")
    p.add_argument("--reflectors", nargs="+", default=["B"], help="Reflector pool. Default: B")
    p.add_argument("--order", nargs=3, metavar="NAME", help="Only try this rotor order (left to right).")
    p.add_argument("--window", metavar="ABC", help="Only try this starting window.")
    p.add_argument("--top-k", dest="top_k", type=int, default=10, help="Candidates kept after the coarse stage. Default: 10")
    p.add_argument("--workers", type=int, help="Worker threads (default: up to 8).")
    p.add_argument("--max-evaluations", dest="max_evaluations", type=int, help="Stop after this many candidate decryptions.")
    p.add_argument("--time-limit", dest="time_limit", type=float, help="Stop after this many seconds.")
    p.add_argument("--max-pairs", dest="max_pairs", type=int, default=10, help="Most plugboard cables to place. Default: 10")
    p.add_argument("--annealing", action="store_true", help="Simulated annealing instead of pure hill-climbing.")
    p.add_argument("--refine-rings", dest="refine_rings", action="store_true", help="Also search middle and right ring settings.")
    p.add_argument("--seed", type=int, help="Seed for reproducible plugboard climbs.")
    p.add_argument("--ngrams", metavar="FILE", type=Path, help="N-gram count table ('NGRAM COUNT' per line) for the fine scorer.")
    p.add_argument("--plaintext", metavar="TEXT", help="Known plaintext, only used to report how much was recovered.")
    p.add_argument("--output", metavar="FILE", type=Path, help="Write the best configuration as JSON.")
    p.add_argument("--progress", action="store_true", help="Show progress bars.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log search progress.")
    p.add_argument("--log-file", dest="log_file", metavar="FILE", help="Also write verbose logs to FILE.")
    return p.parse_args(argv)


def build_controller(args: argparse.Namespace) -> SearchController:
    window = args.window.upper() if args.window else None
    if window is not None and len(window) != 3:
        raise InvalidSearchSpace("--window takes 3 letters")
    space = SearchSpace.named(
        args.rotors,
        args.reflectors,
        orders=[[n.upper() for n in args.order]] if args.order else None,
        offsets=[[ch] for ch in window] if window else None,
    )
    fine = NgramScorer(NgramModel.load(args.ngrams)) if args.ngrams else NgramScorer()
    config = SearchConfig(
        top_k=args.top_k,
        workers=args.workers,
        max_pairs=args.max_pairs,
        annealing=args.annealing,
        refine_rings=args.refine_rings,
        seed=args.seed,
        progress=args.progress,
    )
    return SearchController(
        space,
        fine_scorer=fine,
        config=config,
        budget=Budget(args.max_evaluations, args.time_limit),
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.verbose:
        Debug.configure(("search", "scorer", "config"), log_to=args.log_file)

    text = args.ciphertext
    if args.input is not None:
        try:
            text = args.input.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as err:
            sys.exit(f"❌  {err}")
    if not text:
        sys.exit("❌  No ciphertext given (argument or --input).")

    try:
        controller = build_controller(args)
    except (ValueError, OSError) as err:
        sys.exit(f"❌  {err}")

    print(f"Searching {controller.space.size} rotor settings "
          f"({len(controller.prepare(text))} letters)…")
    result = controller.crack(text)

    if result.best is None:
        sys.exit("❌  Budget ran out before any candidate was scored.")

    print(f"\nBest score  : {result.score:.2f}")
    print(f"Settings    : {result.configuration.describe()}")
    print(f"Plaintext   : {group_blocks(result.plaintext)}")
    if args.plaintext:
        print(f"Agreement   : {agreement(result.plaintext, preprocess_message(args.plaintext)):.0%}")
    print(f"Evaluations : {result.evaluations} in {result.elapsed:.1f}s"
          + ("  (budget exhausted)" if result.exhausted else ""))

    if len(result.candidates) > 1:
        print("\nRunners-up:")
        for cand in result.candidates[1:4]:
            print(f"  {cand.describe()}")

    if args.output is not None:
        save_config(result.configuration, args.output)
        print(f"\n✅  Wrote {args.output}")


if __name__ == "__main__":
    main()
