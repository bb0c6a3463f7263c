# machine.py  ─────────────────────────────────────────────────────────
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from debug import Debug
from keyboard_and_plugboard import Keyboard, Plugboard
from permutation import ALPHABET, SIZE
from rotor_and_reflector import Reflector, Rotor, RotorBank

if TYPE_CHECKING:
    from configuration import Configuration

debug = Debug()
debug.disable("encipher")


class Machine:
    """Plugboard → rotors → reflector → rotors → plugboard.

    Encryption and decryption are the same operation: a machine reset to the
    starting configuration turns ciphertext back into plaintext.
    """

    def __init__(
        self,
        pb: Plugboard,
        rotors: RotorBank | Sequence[Rotor],
        reflector: Reflector,
        kb: Keyboard | None = None,
    ) -> None:
        self.kb        = kb or Keyboard()
        self.pb        = pb
        self.rotors    = rotors if isinstance(rotors, RotorBank) else RotorBank(rotors)
        self.reflector = reflector

    @classmethod
    def from_configuration(cls, cfg: "Configuration") -> "Machine":
        return cfg.build_machine()

    # ── key helpers ─────────────────────────────────────────────

    @property
    def positions(self) -> tuple[int, ...]:
        return self.rotors.positions

    def set_key(self, key: str | Sequence[int]) -> None:
        """Rotate each rotor to its window letter (or index)."""
        self.rotors.set_positions(list(key))

    def reset(self) -> None:
        """Back to the offsets the machine was assembled with."""
        self.rotors.reset()

    # ── encipher one symbol  ────────────────────────────────────

    def encode_letter(self, signal: int) -> int:
        self.rotors.step()

        signal = self.pb.forward(signal)
        signal = self.rotors.forward(signal)
        signal = self.reflector.reflect(signal)
        signal = self.rotors.backward(signal)
        out = self.pb.backward(signal)
        if debug.active("encipher"):
            debug.log("encipher", f"{self.rotors.window()} -> {ALPHABET[out]}")
        return out

    def encode_indices(self, signals: Iterable[int]) -> list[int]:
        """Same as repeated encode_letter, over flat lookup tables."""
        bank = self.rotors
        left, middle, right = bank.rotors
        pb = self.pb.table
        ref = self.reflector.permutation.table
        out: list[int] = []
        for sig in signals:
            bank.step()
            lf, lb = left.tables()
            mf, mb = middle.tables()
            rf, rb = right.tables()
            sig = lf[mf[rf[pb[sig]]]]
            sig = rb[mb[lb[ref[sig]]]]
            out.append(pb[sig])
        return out

    def encode_text(self, text: str) -> str:
        """Encipher the letters of *text*, keeping their case.

        Any other character is copied through and does not turn the rotors.
        """
        kb = self.kb
        out: list[str] = []
        for ch in text:
            if ch not in kb:
                out.append(ch)
                continue
            letter = kb.backward(self.encode_letter(kb.forward(ch)))
            out.append(letter if ch.isupper() else letter.lower())
        return "".join(out)

    # ── search support ──────────────────────────────────────────

    def core_tables(self, length: int) -> list[tuple[int, ...]]:
        """Rotor + reflector mapping for each of the next *length* letters.

        The plugboard is left out, so one list serves every plugboard a
        search wants to try: letter *t* enciphers as ``pb[core[t][pb[x]]]``.
        The rotors are advanced by *length* steps.
        """
        bank = self.rotors
        left, middle, right = bank.rotors
        ref = self.reflector.permutation.table
        tables: list[tuple[int, ...]] = []
        for _ in range(length):
            bank.step()
            lf, lb = left.tables()
            mf, mb = middle.tables()
            rf, rb = right.tables()
            tables.append(tuple(rb[mb[lb[ref[lf[mf[rf[x]]]]]]] for x in range(SIZE)))
        return tables

    def __repr__(self) -> str:
        return f"<Machine {self.rotors.window()} {self.pb!r} {self.reflector!r}>"
