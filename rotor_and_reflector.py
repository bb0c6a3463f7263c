# rotor_and_reflector.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import lru_cache

from debug import Debug
from errors import InvalidConfiguration, InvalidPermutation
from permutation import ALPHABET, SIZE, Permutation, to_index

debug = Debug()
debug.disable("stepping")

Wiring = Permutation | str | Sequence[int]


def _as_permutation(wiring: Wiring) -> Permutation:
    if isinstance(wiring, Permutation):
        return wiring
    return Permutation.from_sequence(wiring)


@lru_cache(maxsize=None)
def shift_tables(wiring: tuple[int, ...]) -> tuple[tuple[tuple[int, ...], ...], tuple[tuple[int, ...], ...]]:
    """Forward and backward lookup tables of *wiring* for every shift 0–25.

    Cached per wiring so every rotor built from the same wheel (and every
    search worker) reads the same tables.
    """
    perm = Permutation(wiring)
    conj = [perm.conjugate(s) for s in range(SIZE)]
    return tuple(p.table for p in conj), tuple(p.inverse_table for p in conj)


def _notch_set(notches: int | str | Iterable[int | str]) -> frozenset[int]:
    if isinstance(notches, int):
        return frozenset({to_index(notches)})
    return frozenset(to_index(n) for n in notches)


class Rotor:
    def __init__(
        self,
        wiring: Wiring,
        notches: int | str | Iterable[int | str],
        offset: int | str = 0,
        ring: int | str = 0,
        *,
        name: str | None = None,
    ) -> None:
        self.wiring: Permutation = _as_permutation(wiring)
        self.name = name
        self.notches: frozenset[int] = _notch_set(notches)
        self.offset = to_index(offset)
        self.ring_setting = to_index(ring)
        self._fwd_tables, self._rev_tables = shift_tables(self.wiring.table)

    # ── ring & notch helpers ──────────────────────────────────────
    def set_ring(self, ring: int | str) -> "Rotor":
        self.ring_setting = to_index(ring)
        return self

    def set_notches(self, notches: int | str | Iterable[int | str]) -> "Rotor":
        self.notches = _notch_set(notches)
        return self

    def set_offset(self, offset: int | str) -> "Rotor":
        self.offset = to_index(offset)
        return self

    def at_notch(self) -> bool:
        return self.offset in self.notches

    # ── stepping --------------------------------------------------
    def _rotate(self, steps: int = 1) -> None:
        self.offset = (self.offset + steps) % SIZE

    def step(self) -> None:
        self._rotate(1)

    # ── signal paths ---------------------------------------------
    @property
    def shift(self) -> int:
        return (self.offset - self.ring_setting) % SIZE

    def forward(self, sig: int) -> int:
        return self._fwd_tables[(self.offset - self.ring_setting) % SIZE][sig]

    def backward(self, sig: int) -> int:
        return self._rev_tables[(self.offset - self.ring_setting) % SIZE][sig]

    def tables(self) -> tuple[tuple[int, ...], tuple[int, ...]]:
        """Forward and backward lookup tables at the current offset."""
        shift = (self.offset - self.ring_setting) % SIZE
        return self._fwd_tables[shift], self._rev_tables[shift]

    def effective_permutation(self) -> Permutation:
        """The wiring as seen from the contacts at the current offset."""
        return self.wiring.conjugate(self.shift)

    # ── niceties --------------------------------------------------
    def __repr__(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"<Rotor{label} pos={ALPHABET[self.offset]} ring={self.ring_setting}>"


class RotorBank:
    """Left, middle and right rotor plus the pawl-and-notch stepping rule.

    Before every letter all notch positions are read first, then every rotor
    that must move is advanced:

    * the right rotor always advances;
    * the middle rotor advances when the right rotor sits on its notch, or when
      it sits on its own notch (the pawl to its left pushes it along with the
      left rotor, producing the double step);
    * the left rotor advances when the middle rotor sits on its notch.

    With ``left_notch=True`` the left rotor also advances when it sits on its
    own notch, as if a fourth pawl stood to its left. With
    ``double_step=False`` the bank behaves as an odometer: a rotor only
    advances when its right neighbour advances off a notch.
    """

    def __init__(self, rotors: Sequence[Rotor], *, double_step: bool = True,
                 left_notch: bool = False) -> None:
        if len(rotors) != 3:
            raise InvalidConfiguration(f"Rotor bank needs exactly 3 rotors, got {len(rotors)}")
        self.rotors: list[Rotor] = list(rotors)
        self.double_step = double_step
        self.left_notch = left_notch
        self.start: tuple[int, ...] = self.positions

    @property
    def left(self) -> Rotor:
        return self.rotors[0]

    @property
    def middle(self) -> Rotor:
        return self.rotors[1]

    @property
    def right(self) -> Rotor:
        return self.rotors[2]

    # ── positions ────────────────────────────────────────────────
    @property
    def positions(self) -> tuple[int, ...]:
        return tuple(r.offset for r in self.rotors)

    def set_positions(self, positions: Sequence[int | str]) -> None:
        if len(positions) != len(self.rotors):
            raise InvalidConfiguration("positions length mismatch")
        for rotor, pos in zip(self.rotors, positions):
            rotor.set_offset(pos)

    def reset(self) -> None:
        """Return every rotor to the offsets the bank was built with."""
        self.set_positions(self.start)

    def window(self) -> str:
        return "".join(ALPHABET[p] for p in self.positions)

    # ── stepping logic ───────────────────────────────────────────
    def step(self) -> None:
        left, middle, right = self.rotors

        # read every notch before anything moves
        right_notched = right.at_notch()
        middle_notched = middle.at_notch()

        if self.double_step:
            step_L = middle_notched or (self.left_notch and left.at_notch())
            step_M = right_notched or middle_notched
        else:
            step_M = right_notched
            step_L = step_M and middle_notched

        if step_L:
            left.step()
        if step_M:
            middle.step()
        right.step()
        if debug.active("stepping"):
            debug.log("stepping", f"window {self.window()}")

    # ── signal paths ---------------------------------------------
    def forward(self, sig: int) -> int:
        """Right to left, as the signal enters from the plugboard."""
        for rotor in reversed(self.rotors):
            sig = rotor.forward(sig)
        return sig

    def backward(self, sig: int) -> int:
        for rotor in self.rotors:
            sig = rotor.backward(sig)
        return sig

    def __repr__(self) -> str:
        return (f"<RotorBank {self.window()} double_step={self.double_step} "
                f"left_notch={self.left_notch}>")


class Reflector:
    """Fixed-point-free involution, optionally turned by *offset* at assembly.

    *wiring* may be a direct map ("YRUHQS…", A→Y, B→R, …) or a pair string of
    13 consecutive swaps ("rcpd…" reads r↔c, p↔d, …). The direct reading wins
    when it is a valid reflector.
    """

    def __init__(self, wiring: Wiring, offset: int = 0, *, name: str | None = None) -> None:
        base = self._parse(wiring)
        if base.fixed_points():
            bad = ALPHABET[base.fixed_points()[0]]
            raise InvalidPermutation(f"Reflector maps {bad} to itself")
        if not base.is_involution():
            raise InvalidPermutation("Reflector wiring must be an involution")
        if isinstance(offset, bool) or not isinstance(offset, int):
            raise InvalidPermutation(f"Reflector offset {offset!r} must be an integer")
        if not 0 <= offset < SIZE:
            raise InvalidPermutation(f"Reflector offset {offset} out of range 0–{SIZE - 1}")

        self.name = name
        self.offset = offset
        self.wiring = base
        self.permutation: Permutation = base.conjugate(offset)
        self._map = self.permutation.table
        debug.log("reflector", f"{self.name or 'custom'} offset={offset}: {self.permutation}")

    @staticmethod
    def _parse(wiring: Wiring) -> Permutation:
        if not isinstance(wiring, str):
            return _as_permutation(wiring)
        if len(wiring) != SIZE:
            raise InvalidPermutation(f"Reflector wiring {wiring!r} must have {SIZE} letters")
        try:
            direct = Permutation.from_sequence(wiring)
        except InvalidPermutation:
            direct = None
        if direct is not None and direct.is_involution() and not direct.fixed_points():
            return direct
        return Permutation.from_swaps(wiring[i:i + 2] for i in range(0, SIZE, 2))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[int | str]], offset: int = 0, **kw) -> "Reflector":
        return cls(Permutation.from_swaps(pairs), offset, **kw)

    def reflect(self, sig: int) -> int:
        return self._map[sig]

    apply = reflect

    def __repr__(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"<Reflector{label} offset={self.offset}>"
