from __future__ import annotations

import random

import pytest

from errors import InvalidPermutation
from permutation import ALPHABET, SIZE, Permutation, to_index


def random_perm(rng: random.Random) -> Permutation:
    images = list(range(SIZE))
    rng.shuffle(images)
    return Permutation(images)


def test_to_index_accepts_letters_and_ints():
    assert to_index("a") == 0
    assert to_index("Z") == 25
    assert to_index(7) == 7
    for bad in ("", "AB", "1", 26, -1, 2.0, True):
        with pytest.raises(InvalidPermutation):
            to_index(bad)


def test_rejects_non_bijections():
    with pytest.raises(InvalidPermutation):
        Permutation([0] * SIZE)
    with pytest.raises(InvalidPermutation):
        Permutation(range(25))
    with pytest.raises(InvalidPermutation):
        Permutation.from_sequence("ABCDEFGHIJKLMNOPQRSTUVWXYA")
    with pytest.raises(InvalidPermutation):
        Permutation.from_sequence("ABC")


def test_invert_undoes_apply():
    rng = random.Random(1)
    for _ in range(20):
        p = random_perm(rng)
        for x in range(SIZE):
            assert p.invert(p.apply(x)) == x
            assert p.apply(p.invert(x)) == x


def test_compose_applies_left_first():
    rng = random.Random(2)
    p, q = random_perm(rng), random_perm(rng)
    pq = p.compose(q)
    for x in range(SIZE):
        assert pq.apply(x) == q.apply(p.apply(x))
    assert p.compose(p.inverse()) == Permutation.identity()


def test_rotation_and_conjugate():
    assert Permutation.rotation(3).apply(24) == 1
    rng = random.Random(3)
    p = random_perm(rng)
    assert p.conjugate(0) == p
    assert p.conjugate(SIZE) == p
    k = 5
    c = p.conjugate(k)
    for x in range(SIZE):
        assert c.apply(x) == (p.apply((x + k) % SIZE) - k) % SIZE


def test_swaps_build_involutions():
    p = Permutation.from_swaps(["AB", ("c", "d"), (4, 5)])
    assert p.is_involution()
    assert p.apply(0) == 1 and p.apply(1) == 0
    assert p.apply(2) == 3 and p.apply(5) == 4
    assert p.swaps() == [(0, 1), (2, 3), (4, 5)]
    assert len(p.fixed_points()) == SIZE - 6
    assert p.max_cycle_len() == 2


def test_swaps_reject_overlap_and_self_pairs():
    with pytest.raises(InvalidPermutation):
        Permutation.from_swaps(["AB", "BC"])
    with pytest.raises(InvalidPermutation):
        Permutation.from_swaps(["AA"])
    with pytest.raises(InvalidPermutation):
        Permutation.from_swaps(["ABC"])


def test_structure_queries():
    ident = Permutation.identity()
    assert ident.fixed_points() == list(range(SIZE))
    assert ident.max_cycle_len() == 1
    assert Permutation.rotation(1).max_cycle_len() == SIZE
    assert not Permutation.rotation(1).is_involution()


def test_string_form_and_hash():
    p = Permutation.from_sequence("EKMFLGDQVZNTOWYHXUSPAIBRCJ")
    assert str(p) == "EKMFLGDQVZNTOWYHXUSPAIBRCJ"
    assert p == Permutation.from_sequence("ekmflgdqvzntowyhxuspaibrcj")
    assert len({p, Permutation(p.table)}) == 1
    assert len(p) == SIZE
    assert ALPHABET[p.invert(to_index("E"))] == "A"
