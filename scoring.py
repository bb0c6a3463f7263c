# scoring.py
"""Plausibility scores for candidate plaintexts.

Higher is more like natural language. Every scorer accepts either a string
(non-letters are ignored) or a sequence of alphabet indices, keeps no state
between calls, and never raises on short input: it returns its defined
minimum instead.
"""
from __future__ import annotations

import math
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from corpus import ENGLISH
from debug import Debug
from keyboard_and_plugboard import Keyboard
from permutation import SIZE

debug = Debug()
debug.disable("scorer")

_KB = Keyboard()


def _indices(text: str | Sequence[int]) -> Sequence[int]:
    if isinstance(text, str):
        return _KB.to_indices(text)
    return text


class Scorer:
    """Interface: ``score(text) -> float``."""

    name = "scorer"
    minimum = float("-inf")

    def score(self, text: str | Sequence[int]) -> float:
        raise NotImplementedError

    def __call__(self, text: str | Sequence[int]) -> float:
        return self.score(text)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class IndexOfCoincidenceScorer(Scorer):
    """Friedman's index of coincidence.

    About 0.066 for English and 0.038 for uniformly random letters. It only
    looks at letter frequencies, so a plugboard that is still missing a few
    cables barely disturbs it, which makes it the right measure while the
    rotor settings are being searched.
    """

    name = "ic"
    minimum = 0.0

    def score(self, text: str | Sequence[int]) -> float:
        seq = _indices(text)
        n = len(seq)
        if n < 2:
            return self.minimum
        counts = [0] * SIZE
        for s in seq:
            counts[s] += 1
        return sum(c * (c - 1) for c in counts) / (n * (n - 1))


@dataclass(frozen=True, eq=False, slots=True)
class NgramModel:
    """log10 probabilities of every n-gram, stored densely by base-26 code."""

    n: int
    log_probs: tuple[float, ...]
    floor: float

    @classmethod
    def from_counts(cls, counts: Mapping[str, int], n: int | None = None,
                    floor_count: float = 0.01) -> "NgramModel":
        """Unseen n-grams get log10(floor_count / total)."""
        if not counts:
            raise ValueError("Cannot build an n-gram model from no counts")
        n = n or len(next(iter(counts)))
        if not 1 <= n <= 5:
            raise ValueError(f"n-gram size {n} out of range 1–5")
        total = sum(counts.values())
        floor = math.log10(floor_count / total)
        table = [floor] * (SIZE ** n)
        for gram, count in counts.items():
            seq = _KB.to_indices(gram)
            if len(seq) != n or count <= 0:
                continue
            code = 0
            for s in seq:
                code = code * SIZE + s
            table[code] = math.log10(count / total)
        debug.log("scorer", f"{n}-gram model: {len(counts)} grams, {total} samples")
        return cls(n, tuple(table), floor)

    @classmethod
    def from_corpus(cls, text: str, n: int = 3) -> "NgramModel":
        seq = _KB.to_indices(text)
        grams = Counter(
            "".join(chr(65 + s) for s in seq[i : i + n]) for i in range(len(seq) - n + 1)
        )
        return cls.from_counts(grams, n)

    @classmethod
    def load(cls, path: str | Path) -> "NgramModel":
        """Read ``NGRAM COUNT`` lines, the usual published table format."""
        counts: dict[str, int] = {}
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                parts = line.split()
                if len(parts) == 2 and parts[1].isdigit():
                    counts[parts[0].upper()] = int(parts[1])
        return cls.from_counts(counts)

    @staticmethod
    @lru_cache(maxsize=None)
    def english(n: int = 3) -> "NgramModel":
        """Model trained on the bundled corpus; built once per *n*."""
        return NgramModel.from_corpus(ENGLISH, n)


class NgramScorer(Scorer):
    """Sum of n-gram log probabilities.

    The sum is additive over positions, so changing a few letters changes
    only the terms that touch them.
    """

    def __init__(self, model: NgramModel | None = None) -> None:
        self.model = model or NgramModel.english(3)
        self.name = f"{self.model.n}-gram"

    def score(self, text: str | Sequence[int]) -> float:
        seq = _indices(text)
        n = self.model.n
        if len(seq) < n:
            return self.minimum
        table = self.model.log_probs
        modulus = SIZE ** (n - 1)
        code = 0
        for s in seq[: n - 1]:
            code = code * SIZE + s
        total = 0.0
        for s in seq[n - 1 :]:
            code = (code % modulus) * SIZE + s
            total += table[code]
        return total

    def __repr__(self) -> str:
        return f"<NgramScorer n={self.model.n}>"
