from __future__ import annotations

import pytest

from configuration import ReflectorSpec, RotorSpec
from cracker import (
    PAIR_MOVES,
    Budget,
    Candidate,
    SearchConfig,
    SearchController,
    SearchSpace,
    TopK,
    crack,
    neighbour,
    pair_count,
)
from errors import InvalidSearchSpace
from permutation import SIZE, Permutation
from utilities import agreement, preprocess_message

WHEELS = ("I", "II", "III")


def specs(names=WHEELS):
    return {n: RotorSpec.named(n) for n in names}


def refls(names=("B",)):
    return {n: ReflectorSpec.named(n) for n in names}


# ── search space ────────────────────────────────────────────────────


def test_space_rejects_empty_pools():
    with pytest.raises(InvalidSearchSpace):
        SearchSpace({}, refls())
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), {})


def test_space_needs_three_distinct_rotors():
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(("I", "II")), refls())
    space = SearchSpace(specs(("I", "II")), refls(), allow_duplicates=True)
    assert len(space.rotor_orders()) == 8


def test_space_rejects_contradictory_constraints():
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), refls(), orders=[("I", "II", "IV")])
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), refls(), orders=[("I", "I", "II")])
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), refls(), orders=[])
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), refls(), offsets=[["A"], [], ["C"]])
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), refls(), offsets=[["A"], ["B"]])
    with pytest.raises(InvalidSearchSpace):
        SearchSpace(specs(), refls(), offsets=[["A"], ["B"], ["?"]])
    with pytest.raises(InvalidSearchSpace):
        SearchSpace.named(["I", "II", "XI"])


def test_space_size():
    space = SearchSpace.named(("I", "II", "III", "IV", "V"), ("B", "C"))
    assert len(space.rotor_orders()) == 60
    assert space.size == 60 * 2 * SIZE ** 3
    narrow = SearchSpace(specs(), refls(), offsets=[["A"], "ABC", range(SIZE)])
    assert narrow.size == 6 * 3 * SIZE


# ── budget and top-k ────────────────────────────────────────────────


def test_budget_counts_evaluations():
    budget = Budget(max_evaluations=5)
    assert all(budget.consume() for _ in range(5))
    assert not budget.exhausted
    assert not budget.consume()
    assert budget.exhausted
    assert budget.evaluations == 5


def test_budget_deadline():
    budget = Budget(time_limit=0)
    assert not budget.consume()
    assert budget.exhausted


def test_unlimited_budget():
    budget = Budget()
    assert all(budget.consume() for _ in range(1000))
    assert not budget.exhausted


def test_topk_keeps_best(historical):
    top = TopK(2)
    for score in (1.0, 3.0, 2.0, 0.5):
        top.offer(Candidate(score, historical))
    assert [c.score for c in top.ranked()] == [3.0, 2.0]


def test_topk_ties_prefer_earlier_enumeration(historical):
    for order in ((5, 1), (1, 5)):
        top = TopK(1)
        top.merge(Candidate(1.0, historical, seq) for seq in order)
        assert top.ranked()[0].seq == 1


def test_topk_size_checked():
    with pytest.raises(ValueError):
        TopK(0)


# ── plugboard moves ─────────────────────────────────────────────────


def _board(*pairs):
    return list(Permutation.from_swaps(pairs).table)


def test_neighbourhood_covers_every_pair():
    assert len(PAIR_MOVES) == SIZE * (SIZE - 1) // 2


def test_neighbour_moves():
    empty = _board()
    assert neighbour(empty, 0, 1, 10) == _board("AB")
    assert neighbour(_board("AB"), 0, 1, 10) == empty
    assert neighbour(_board("AC"), 0, 1, 10) == _board("AB")
    assert neighbour(_board("BD"), 0, 1, 10) == _board("AB")
    assert neighbour(_board("AC", "BD"), 0, 1, 10) == _board("AB", "CD")
    assert neighbour(_board("CD"), 0, 1, 1) is None


def test_neighbours_are_involutions():
    board = _board("AC", "BD", "EF")
    for a, b in PAIR_MOVES:
        new = neighbour(board, a, b, 10)
        assert Permutation(new).is_involution()
        assert pair_count(new) <= 4


# ── stages ──────────────────────────────────────────────────────────


def _encrypt(cfg, text):
    return cfg.build_machine().encode_text(preprocess_message(text))


def test_coarse_search_finds_rotor_settings(historical, plaintext):
    key = historical.with_offsets("AMX")
    cipher = _encrypt(key, plaintext)
    space = SearchSpace(
        specs(), refls(),
        orders=[("I", "II", "III"), ("II", "I", "III")],
        offsets=[["A"], range(SIZE), range(SIZE)],
    )
    controller = SearchController(space, config=SearchConfig(top_k=3, workers=2))
    ranked = controller.coarse_search(cipher)
    assert len(ranked) == 3
    assert ranked[0].score >= ranked[-1].score
    found = [(tuple(r.label for r in c.configuration.rotors), c.configuration.offsets) for c in ranked]
    assert (WHEELS, (0, 12, 23)) in found
    assert controller.budget.evaluations == 2 * SIZE * SIZE


def _plugged_setup(historical, plaintext, **config):
    key = historical.with_offsets("CAT").with_plugboard(["EQ", "TX"])
    cipher = _encrypt(key, plaintext)
    space = SearchSpace(specs(), refls(), orders=[WHEELS], offsets=[["C"], ["A"], ["T"]])
    controller = SearchController(space, config=SearchConfig(**config))
    start = Candidate(0.0, key.with_plugboard(()))
    start_plain = start.configuration.build_machine().encode_text(cipher)
    return controller, cipher, start, start_plain


def test_hill_climb_improves_monotonically(historical, plaintext):
    controller, cipher, start, start_plain = _plugged_setup(
        historical, plaintext, max_pairs=4, seed=7)
    start_score = controller.fine_scorer.score(start_plain)
    result = controller.refine(cipher, start, seed=7)

    assert result.trace[0] == pytest.approx(start_score)
    assert all(b > a for a, b in zip(result.trace, result.trace[1:]))
    assert result.score == result.trace[-1]
    assert result.score > start_score
    assert len(result.configuration.plugboard_pairs) <= 4
    truth = preprocess_message(plaintext)
    assert agreement(result.plaintext, truth) > agreement(start_plain, truth)
    # the reported plaintext is what the reported configuration decrypts to
    assert result.configuration.build_machine().encode_text(cipher) == result.plaintext


def test_hill_climb_is_reproducible(historical, plaintext):
    controller, cipher, start, _ = _plugged_setup(historical, plaintext, seed=3)
    first = controller.refine(cipher, start, seed=3)
    second = controller.refine(cipher, start, seed=3)
    assert first.configuration == second.configuration
    assert first.trace == second.trace


def test_annealing_never_reports_worse_than_start(historical, plaintext):
    controller, cipher, start, start_plain = _plugged_setup(
        historical, plaintext, annealing=True, max_moves=1500, seed=11)
    result = controller.refine(cipher, start, seed=11)
    assert result.score >= controller.fine_scorer.score(start_plain)
    assert all(b > a for a, b in zip(result.trace, result.trace[1:]))


def test_ring_stage_keeps_or_improves(historical, plaintext):
    key = historical.with_offsets("AMX")
    cipher = _encrypt(key, plaintext)
    space = SearchSpace(specs(), refls(), orders=[WHEELS])
    controller = SearchController(space)
    start = Candidate(controller.coarse_scorer.score(preprocess_message(plaintext)), key)
    out = controller.refine_rings(cipher, start)
    assert out.score >= start.score
    assert controller.budget.evaluations == SIZE * SIZE - 1


def test_crack_end_to_end(historical, plaintext):
    key = historical.with_offsets("CAT").with_plugboard(["EQ"])
    cipher = _encrypt(key, plaintext)
    result = crack(
        cipher, WHEELS, ("B",),
        orders=[WHEELS], offsets=[["C"], ["A"], range(SIZE)],
        top_k=2, workers=2, max_pairs=3, seed=1,
    )
    assert result.best is not None
    assert result.best is result.candidates[0]
    assert result.configuration.offsets == (2, 0, 19)
    assert not result.exhausted
    assert agreement(result.plaintext, preprocess_message(plaintext)) > 0.9


def test_budget_exhaustion_returns_best_so_far(historical, plaintext):
    cipher = _encrypt(historical.with_offsets("CAT"), plaintext)
    result = crack(cipher, WHEELS, ("B",), orders=[WHEELS], max_evaluations=100, top_k=3)
    assert result.exhausted
    assert result.evaluations == 100
    assert result.best is not None
    assert len(result.coarse) == 3


def test_zero_budget_yields_no_candidate(historical, plaintext):
    cipher = _encrypt(historical, plaintext)
    result = crack(cipher, WHEELS, ("B",), orders=[WHEELS], max_evaluations=0)
    assert result.best is None
    assert result.configuration is None
    assert result.exhausted


@pytest.mark.parametrize("cipher", ["", "AB", "x y!"])
def test_short_ciphertext_gives_best_effort_result(cipher):
    result = crack(
        cipher, WHEELS, ("B",),
        orders=[WHEELS], offsets=[["A"], ["A"], range(SIZE)],
        top_k=2, workers=2, seed=1,
    )
    assert result.best is not None
    assert len(result.candidates) == 2
    assert result.score == float("-inf")
    assert len(result.plaintext) == len(preprocess_message(cipher))
    assert not result.exhausted


@pytest.mark.parametrize(
    "settings",
    [{"top_k": 0}, {"top_k": -3}, {"workers": 0}, {"max_pairs": -1}, {"max_pairs": 14}],
)
def test_search_config_rejects_out_of_range_settings(settings):
    with pytest.raises(InvalidSearchSpace):
        SearchConfig(**settings)
    with pytest.raises(InvalidSearchSpace):
        crack("ABCDEF", WHEELS, ("B",), orders=[WHEELS], **settings)
