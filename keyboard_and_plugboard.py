# keyboard_and_plugboard.py
from __future__ import annotations

from collections.abc import Iterable, Sequence

from debug import Debug
from errors import InvalidPermutation
from permutation import ALPHABET, Permutation

debug = Debug()
debug.disable("plugboard")


# ── Keyboard ──────────────────────────────────────────────────────
class Keyboard:
    """Letters in, lamps out: 26 case-insensitive letters ↔ indices 0–25."""

    def __init__(self, alphabet: str = ALPHABET) -> None:
        self.alphabet: str = alphabet
        self.alpha_to_index: dict[str, int] = {}
        for i, ch in enumerate(alphabet):
            self.alpha_to_index[ch.upper()] = i
            self.alpha_to_index[ch.lower()] = i

    def __contains__(self, letter: str) -> bool:
        return letter in self.alpha_to_index

    # letter → integer signal
    def forward(self, letter: str) -> int:
        try:
            return self.alpha_to_index[letter]
        except KeyError:
            raise ValueError(
                f"Invalid character {letter!r} for current alphabet."
            ) from None

    # integer signal → letter
    def backward(self, signal: int) -> str:
        if not (0 <= signal < len(self.alphabet)):
            hi = len(self.alphabet) - 1
            raise ValueError(f"Signal {signal} out of range 0–{hi}")
        return self.alphabet[signal]

    def to_indices(self, text: str) -> list[int]:
        """Indices of the letters in *text*; everything else is skipped."""
        lookup = self.alpha_to_index
        return [lookup[ch] for ch in text if ch in lookup]

    def to_text(self, signals: Iterable[int]) -> str:
        return "".join(self.alphabet[s] for s in signals)


# ── Plugboard ─────────────────────────────────────────────────────
class Plugboard:
    def __init__(self, pairs: Iterable[str | Sequence[int | str]] = ()) -> None:
        # "AB" and ("A", "B") both describe one cable
        normalised = [tuple(raw) for raw in pairs]
        self.permutation: Permutation = Permutation.from_swaps(normalised)
        self._map = self.permutation.table

    @classmethod
    def from_table(cls, table: Sequence[int]) -> "Plugboard":
        """Adopt an involution given as 26 images (as the search keeps it)."""
        perm = Permutation(table)
        if not perm.is_involution():
            raise InvalidPermutation("Plugboard table must be an involution")
        return cls(perm.swaps())

    # one private helper does the job for both directions
    def _map_signal(self, signal: int) -> int:
        mapped = self._map[signal]
        debug.log("plugboard", f"{ALPHABET[signal]}->{ALPHABET[mapped]}")
        return mapped

    apply = _map_signal
    forward = _map_signal        # alias: signal in
    backward = _map_signal       # alias: signal out

    @property
    def table(self) -> tuple[int, ...]:
        return self._map

    @property
    def pairs(self) -> list[tuple[str, str]]:
        return [(ALPHABET[a], ALPHABET[b]) for a, b in self.permutation.swaps()]

    def __len__(self) -> int:
        return len(self.permutation.swaps())

    # nicety for debugging
    def __repr__(self) -> str:
        swaps = [a + b for a, b in self.pairs]
        return f"<Plugboard {' '.join(swaps)}>"


__all__ = ["Keyboard", "Plugboard"]
