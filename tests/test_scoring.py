from __future__ import annotations

import math
import random

import pytest

from keyboard_and_plugboard import Keyboard
from scoring import IndexOfCoincidenceScorer, NgramModel, NgramScorer


def scramble(text: str, seed: int = 0) -> str:
    letters = [ch for ch in text.upper() if ch.isalpha()]
    random.Random(seed).shuffle(letters)
    return "".join(letters)


def random_letters(n: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    return "".join(chr(65 + rng.randrange(26)) for _ in range(n))


def test_ic_known_values():
    ic = IndexOfCoincidenceScorer()
    assert ic.score("") == 0.0
    assert ic.score("A") == 0.0
    assert ic.score("AAAA") == 1.0
    assert ic.score("ABCD") == 0.0


def test_ic_prefers_language(plaintext):
    ic = IndexOfCoincidenceScorer()
    assert ic(plaintext) > 0.055
    assert ic(random_letters(len(plaintext))) < 0.05
    # frequency-only: a shuffle changes nothing
    assert ic(scramble(plaintext)) == pytest.approx(ic(plaintext))


def test_ngram_scorer_ranks_language_above_shuffle(plaintext):
    scorer = NgramScorer()
    assert scorer(plaintext) > scorer(scramble(plaintext))
    assert scorer(plaintext) > scorer(random_letters(len(plaintext)))


def test_ngram_short_input_is_minimum():
    scorer = NgramScorer()
    assert scorer.score("AB") == -math.inf
    assert math.isfinite(scorer.score("THE"))


def test_strings_and_indices_score_alike(plaintext):
    indices = Keyboard().to_indices(plaintext)
    for scorer in (IndexOfCoincidenceScorer(), NgramScorer()):
        assert scorer.score(plaintext) == scorer.score(indices)


def test_ngram_score_is_additive():
    scorer = NgramScorer(NgramModel.english(2))
    whole = scorer("THEN")
    parts = scorer("TH") + scorer("HE") + scorer("EN")
    assert whole == pytest.approx(parts)


def test_model_from_counts_and_floor():
    model = NgramModel.from_counts({"TH": 90, "HE": 10})
    assert model.n == 2
    scorer = NgramScorer(model)
    assert scorer("TH") == pytest.approx(math.log10(0.9))
    assert scorer("QZ") == pytest.approx(model.floor)
    assert model.floor < math.log10(0.1)


def test_model_load(tmp_path):
    path = tmp_path / "trigrams.txt"
    path.write_text("THE 500\nAND 300\nING 200\n", encoding="utf-8")
    model = NgramModel.load(path)
    assert model.n == 3
    assert NgramScorer(model)("THE") == pytest.approx(math.log10(0.5))


def test_model_rejects_empty_counts():
    with pytest.raises(ValueError):
        NgramModel.from_counts({})


def test_english_model_is_cached():
    assert NgramModel.english(3) is NgramModel.english(3)
