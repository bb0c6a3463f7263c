# main.py
from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from configuration import Configuration, ReflectorSpec, RotorSpec, load_config
from debug import Debug
from errors import InvalidConfiguration
from machine import Machine
from utilities import group_blocks, preprocess_message

# ────────────────────────────────────────────────────────────────────────
#  0. Configuration & logging
# ────────────────────────────────────────────────────────────────────────


debug = Debug()
debug.toggle_global(False)

DEFAULT_CONFIG = Path("daily_key.json")


@dataclass(slots=True)
class Config:
    """Runtime switches for how text goes in and comes out."""

    keep_format: bool = False       # keep case, spaces and punctuation
    block: int = 5                  # display block size (0 = no grouping)


# ────────────────────────────────────────────────────────────────────────
#  1. MachineContext – a machine plus its starting key
# ────────────────────────────────────────────────────────────────────────


class MachineContext:
    """Keeps the configuration next to the machine so every message can
    start from the same key."""

    def __init__(self, configuration: Configuration) -> None:
        self.configuration = configuration
        self.machine: Machine = configuration.build_machine()

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "MachineContext":
        if args.config:
            return cls(load_config(args.config))
        if not args.rotors and DEFAULT_CONFIG.exists():
            return cls(load_config(DEFAULT_CONFIG))

        names = args.rotors or ["I", "II", "III"]
        if len(names) != 3:
            raise InvalidConfiguration(f"--rotors needs 3 names, got {len(names)}")
        window = (args.window or "AAA").upper()
        rings = (args.rings or "AAA").upper()
        if len(window) != 3 or len(rings) != 3:
            raise InvalidConfiguration("--window and --rings take 3 letters each")
        specs = tuple(
            RotorSpec.named(n, offset=w, ring=r) for n, w, r in zip(names, window, rings)
        )
        cfg = Configuration(
            specs,
            ReflectorSpec.named(args.reflector, args.reflector_offset),
            double_step=not args.odometer,
            left_notch=args.left_notch,
        )
        return cls(cfg.with_plugboard(args.plugs or ()).validate())

    # ––– helpers ––––––––––––––––––––––––––––––––––––––––––––––––

    def rewind(self) -> None:
        """Back to the configured window."""
        self.machine.reset()

    def encipher(self, text: str, cfg: Config) -> str:
        """Encipher (or decipher) *text* from the starting key."""
        self.rewind()
        if cfg.keep_format:
            return self.machine.encode_text(text)
        out = self.machine.encode_text(preprocess_message(text))
        return group_blocks(out, cfg.block)


# ────────────────────────────────────────────────────────────────────────
#  2. CLI helpers
# ────────────────────────────────────────────────────────────────────────


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Encipher or decipher with a three-rotor machine. "
                    "The same settings do both."
    )
    p.add_argument("-m", "--message", metavar="TEXT", help="Text to encipher. If omitted (and no --input), an interactive REPL starts.")
    p.add_argument("--input", metavar="FILE", type=Path, help="Read the text from FILE.")
    p.add_argument("--output", metavar="FILE", type=Path, help="Write the result to FILE instead of stdout.")
    p.add_argument("--config", metavar="FILE", help=f"Load machine settings from JSON (default: {DEFAULT_CONFIG} when present).")
    p.add_argument("--rotors", nargs="+", metavar="NAME", help="Rotor names left to right, e.g. I II III.")
    p.add_argument("--reflector", default="B", help="Reflector name. Default: B")
    p.add_argument("--reflector-offset", dest="reflector_offset", type=int, default=0, help="Reflector offset 0–25. Default: 0")
    p.add_argument("--window", metavar="ABC", help="Starting window letters. Default: AAA")
    p.add_argument("--rings", metavar="ABC", help="Ring settings as letters. Default: AAA")
    p.add_argument("--plugs", nargs="*", metavar="AB", help="Plugboard pairs, e.g. AB EQ.")
    p.add_argument("--odometer", action="store_true", help="Plain odometer stepping instead of the double step.")
    p.add_argument("--left-notch", dest="left_notch", action="store_true", help="Also step the left rotor when it sits on its own notch.")
    p.add_argument("--keep-format", dest="keep_format", action="store_true", help="Keep case, spaces and punctuation.")
    p.add_argument("--block", type=int, default=5, help="Output group size (0 = none). Default: 5")
    p.add_argument("-v", "--verbose", action="store_true", help="Log stepping and configuration details.")
    p.add_argument("--log-file", dest="log_file", metavar="FILE", help="Also write verbose logs to FILE.")
    return p.parse_args(argv)


# ────────────────────────────────────────────────────────────────────────
#  3. Main entry point
# ────────────────────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.verbose:
        Debug.configure(("config", "stepping"), log_to=args.log_file)

    text = args.message
    try:
        ctx = MachineContext.from_args(args)
        if args.input is not None:
            text = args.input.read_text(encoding="utf-8")
    except (InvalidConfiguration, OSError, UnicodeDecodeError) as err:
        sys.exit(f"❌  {err}")

    cfg = Config(keep_format=args.keep_format, block=args.block)

    # one‑shot mode ------------------------------------------------------
    if text is not None:
        result = ctx.encipher(text, cfg)
        if args.output is not None:
            args.output.write_text(result + "\n", encoding="utf-8")
        else:
            print(result)
        return

    # interactive REPL ---------------------------------------------------
    print(f"\nMachine ready: {ctx.configuration.describe()}")
    print("Every line starts from the same key. Type blank line to quit.\n")
    while True:
        txt = input("\nText: ")
        if not txt.strip():
            break
        print("\nResult:", ctx.encipher(txt, cfg))


if __name__ == "__main__":
    main()
