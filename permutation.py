# permutation.py
"""Permutations over the 26-letter alphabet.

A permutation is stored as the tuple of images (position *i* holds the image
of *i*) together with its inverse, so both directions are O(1) lookups.

Composition reads left to right: ``p.compose(q)`` applies *p* first and then
*q*, i.e. ``p.compose(q).apply(x) == q.apply(p.apply(x))``.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from errors import InvalidPermutation

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
SIZE = len(ALPHABET)

_INDEX = {ch: i for i, ch in enumerate(ALPHABET)}


def to_index(symbol: int | str) -> int:
    """Map a letter (either case) or an integer to an alphabet index."""
    if isinstance(symbol, str):
        if len(symbol) != 1 or symbol.upper() not in _INDEX:
            raise InvalidPermutation(f"Symbol {symbol!r} not in alphabet")
        return _INDEX[symbol.upper()]
    if isinstance(symbol, bool) or not isinstance(symbol, int):
        raise InvalidPermutation(f"Symbol {symbol!r} is neither a letter nor an index")
    if not 0 <= symbol < SIZE:
        raise InvalidPermutation(f"Index {symbol} out of range 0–{SIZE - 1}")
    return symbol


class Permutation:
    __slots__ = ("_fwd", "_rev")

    def __init__(self, images: Sequence[int]) -> None:
        fwd = tuple(images)
        if len(fwd) != SIZE:
            raise InvalidPermutation(f"Expected {SIZE} images, got {len(fwd)}")
        rev = [-1] * SIZE
        for i, img in enumerate(fwd):
            if isinstance(img, bool) or not isinstance(img, int) or not 0 <= img < SIZE:
                raise InvalidPermutation(f"Image {img!r} at position {i} out of range")
            if rev[img] != -1:
                raise InvalidPermutation(f"Image {ALPHABET[img]} used twice")
            rev[img] = i
        self._fwd: tuple[int, ...] = fwd
        self._rev: tuple[int, ...] = tuple(rev)

    # ── constructors ─────────────────────────────────────────────
    @classmethod
    def from_sequence(cls, seq: Sequence[int] | str) -> "Permutation":
        """Build from 26 indices or a 26-letter string (case-insensitive)."""
        if isinstance(seq, str):
            if len(seq) != SIZE:
                raise InvalidPermutation(f"Wiring {seq!r} must have {SIZE} letters")
            return cls([to_index(ch) for ch in seq])
        return cls(seq)

    @classmethod
    def from_swaps(cls, pairs: Iterable[Sequence[int | str]]) -> "Permutation":
        """Build an involution from disjoint swap pairs; other symbols are fixed."""
        images = list(range(SIZE))
        used: set[int] = set()
        for pair in pairs:
            if len(pair) != 2:
                raise InvalidPermutation(f"Pair {pair!r} must have exactly 2 symbols")
            a, b = (to_index(s) for s in pair)
            if a == b:
                raise InvalidPermutation(f"Cannot swap {ALPHABET[a]} with itself")
            if a in used or b in used:
                dup = a if a in used else b
                raise InvalidPermutation(f"Symbol {ALPHABET[dup]} already used in a pair")
            images[a], images[b] = b, a
            used.update((a, b))
        return cls(images)

    @classmethod
    def identity(cls) -> "Permutation":
        return cls(range(SIZE))

    @classmethod
    def rotation(cls, k: int) -> "Permutation":
        """x → x + k (mod 26)."""
        return cls([(i + k) % SIZE for i in range(SIZE)])

    # ── lookups ──────────────────────────────────────────────────
    def apply(self, index: int) -> int:
        return self._fwd[index]

    def invert(self, index: int) -> int:
        return self._rev[index]

    @property
    def table(self) -> tuple[int, ...]:
        return self._fwd

    @property
    def inverse_table(self) -> tuple[int, ...]:
        return self._rev

    # ── algebra ──────────────────────────────────────────────────
    def compose(self, other: "Permutation") -> "Permutation":
        """Apply *self* first, then *other*."""
        return Permutation([other._fwd[x] for x in self._fwd])

    def inverse(self) -> "Permutation":
        return Permutation(self._rev)

    def conjugate(self, k: int) -> "Permutation":
        """Rotate the input by +k, apply self, rotate the output by -k."""
        return Permutation.rotation(k).compose(self).compose(Permutation.rotation(-k))

    # ── structure ────────────────────────────────────────────────
    def fixed_points(self) -> list[int]:
        return [i for i, img in enumerate(self._fwd) if i == img]

    def is_involution(self) -> bool:
        return self._fwd == self._rev

    def max_cycle_len(self) -> int:
        visited = [False] * SIZE
        longest = 0
        for start in range(SIZE):
            length, j = 0, start
            while not visited[j]:
                visited[j] = True
                length += 1
                j = self._fwd[j]
            longest = max(longest, length)
        return longest

    def swaps(self) -> list[tuple[int, int]]:
        """The non-trivial 2-cycles, lowest index first."""
        return [(i, img) for i, img in enumerate(self._fwd) if i < img and self._fwd[img] == i]

    # ── niceties ─────────────────────────────────────────────────
    def __len__(self) -> int:
        return SIZE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permutation):
            return NotImplemented
        return self._fwd == other._fwd

    def __hash__(self) -> int:
        return hash(self._fwd)

    def __str__(self) -> str:
        return "".join(ALPHABET[i] for i in self._fwd)

    def __repr__(self) -> str:
        return f"<Permutation {self}>"
