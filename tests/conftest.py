from __future__ import annotations

import pytest

from configuration import Configuration, ReflectorSpec, RotorSpec

PLAINTEXT = (
    "At first light the patrol reached the edge of the forest and stopped to "
    "wait for the others. Nobody spoke. The river was lower than they had "
    "expected and the old bridge had been washed away during the winter, so "
    "the sergeant sent two men downstream to look for a place where the water "
    "was shallow enough to cross. They came back an hour later with good news "
    "and the whole company moved off before the sun was high."
)


@pytest.fixture
def plaintext() -> str:
    return PLAINTEXT


@pytest.fixture
def historical() -> Configuration:
    """Rotors I II III, reflector B, window AAA, no plugs."""
    return Configuration(
        tuple(RotorSpec.named(n) for n in ("I", "II", "III")),
        ReflectorSpec.named("B"),
    )


@pytest.fixture
def scenario() -> Configuration:
    """Rotors I II III at AAA, plugs AB EQ, pair-notation reflector at offset 5."""
    return Configuration(
        tuple(RotorSpec.named(n) for n in ("I", "II", "III")),
        ReflectorSpec("rcpdnugiozlmhetwsjxykvfqab", 5),
        plugboard_pairs=(("A", "B"), ("E", "Q")),
    )
