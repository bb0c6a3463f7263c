# settings_generator.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from random import Random, SystemRandom
from typing import List, Sequence

from configuration import Configuration, ReflectorSpec, RotorSpec, save_config
from errors import InvalidConfiguration
from permutation import ALPHABET
from utilities import base_reflectors, base_rotors, sorted_names

# ── helpers ───────────────────────────────────────────────────────


def build_rng(seed: int | None) -> Random | SystemRandom:
    """Deterministic RNG when *seed* given; CSPRNG otherwise."""
    return Random(seed) if seed is not None else SystemRandom()


def choose_pairs(alpha: str, k: int, rng: Random | SystemRandom) -> List[str]:
    """Return *k* disjoint plug pairs."""
    max_possible = len(alpha) // 2
    k = min(k, max_possible)
    pool = list(alpha)
    rng.shuffle(pool)
    return [a + b for a, b in zip(pool[::2], pool[1::2])][:k]


def random_configuration(
    rng: Random | SystemRandom,
    *,
    rotors: Sequence[str] = ("I", "II", "III", "IV", "V"),
    reflectors: Sequence[str] = ("B", "C"),
    pairs: int = 10,
    rings: bool = True,
    double_step: bool = True,
) -> Configuration:
    """A valid random daily key drawn from the wheel database."""
    pool = sorted_names(r.upper() for r in rotors)
    if len(pool) < 3:
        raise InvalidConfiguration(f"Need at least 3 rotors to choose from, got {len(pool)}")
    if not reflectors:
        raise InvalidConfiguration("Need at least one reflector to choose from")

    names = rng.sample(pool, 3)
    specs = tuple(
        RotorSpec.named(
            name,
            offset=ALPHABET[rng.randrange(len(ALPHABET))],
            ring=rng.randrange(len(ALPHABET)) if rings else 0,
        )
        for name in names
    )
    reflector = ReflectorSpec.named(rng.choice(sorted_names(r.upper() for r in reflectors)))
    cfg = Configuration(specs, reflector, double_step=double_step)
    return cfg.with_plugboard(choose_pairs(ALPHABET, pairs, rng)).validate()


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a random daily key as JSON")
    p.add_argument("--seed", type=int, help="Deterministic seed (omit for random)")
    p.add_argument(
        "--outfile",
        type=Path,
        default=Path("daily_key.json"),
        help="Destination JSON file (default: daily_key.json)",
    )
    p.add_argument("--pairs", type=int, default=10, help="Plugboard cables (default: 10)")
    p.add_argument("--rotors", nargs="+", default=list(base_rotors)[:5],
                   help="Rotor pool to draw from (default: I–V)")
    p.add_argument("--reflectors", nargs="+", default=["B", "C"],
                   help="Reflector pool to draw from (default: B C)")
    p.add_argument("--no-rings", action="store_true", help="Leave every ring setting at A")
    return p.parse_args(argv)


# ── main ─────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_cli(argv)
    unknown = [n for n in args.rotors if n.upper() not in base_rotors]
    unknown += [n for n in args.reflectors if n.upper() not in base_reflectors]
    if unknown:
        sys.exit(f"Unknown wheels: {' '.join(unknown)}")

    rng = build_rng(args.seed)
    try:
        cfg = random_configuration(
            rng,
            rotors=args.rotors,
            reflectors=args.reflectors,
            pairs=args.pairs,
            rings=not args.no_rings,
        )
    except InvalidConfiguration as err:
        sys.exit(f"❌  {err}")

    save_config(cfg, args.outfile)
    window = "".join(ALPHABET[o] for o in cfg.offsets)
    print(f"✅  Wrote {args.outfile}\n"
          f"   rotors      : {[r.label for r in cfg.rotors]}\n"
          f"   reflector   : {cfg.reflector.label}\n"
          f"   window      : {window}\n"
          f"   plug pairs  : {len(cfg.plugboard_pairs)}")


if __name__ == "__main__":
    main()
