# configuration.py
"""Machine settings as immutable values, and the JSON files that carry them.

A configuration file looks like::

    {
      "rotors": ["I", {"name": "II", "offset": "C"},
                 {"wiring": "BDFHJLCPRTXVZNYEIWGAKMUSQO", "notch": "V", "offset": "A"}],
      "reflector": {"wiring": "rcpdnugiozlmhetwsjxykvfqab", "offset": 5},
      "plugboard": ["AB", "EQ"]
    }

Rotors are listed left to right. A wheel may be given by its name in the
wheel database, by explicit wiring, or both (a name then only labels it).
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Sequence

from debug import Debug
from errors import InvalidConfiguration, InvalidPermutation
from keyboard_and_plugboard import Plugboard
from machine import Machine
from permutation import ALPHABET, to_index
from rotor_and_reflector import Reflector, Rotor, RotorBank
from utilities import reflector_dict, rotor_dict

debug = Debug()
debug.disable("config")

REQUIRED_KEYS = {"rotors", "reflector"}


@dataclass(frozen=True, slots=True)
class RotorSpec:
    wiring: str
    notch: str | int | tuple
    offset: int | str = 0
    ring: int | str = 0
    name: str | None = None

    @classmethod
    def named(cls, name: str, offset: int | str = 0, ring: int | str = 0) -> "RotorSpec":
        try:
            wiring, notch = rotor_dict[name]
        except KeyError:
            raise InvalidConfiguration(f"Unknown rotor {name!r}") from None
        return cls(wiring, notch, offset, ring, name.upper())

    def build(self) -> Rotor:
        return Rotor(self.wiring, self.notch, self.offset, self.ring, name=self.name)

    def at(self, offset: int | str | None = None, ring: int | str | None = None) -> "RotorSpec":
        return replace(
            self,
            offset=self.offset if offset is None else offset,
            ring=self.ring if ring is None else ring,
        )

    @property
    def label(self) -> str:
        return self.name or self.wiring[:6].upper() + "…"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "wiring": self.wiring,
            "notch": self.notch,
            "offset": ALPHABET[to_index(self.offset)],
            "ring": to_index(self.ring),
        }
        if self.name:
            out["name"] = self.name
        return out


@dataclass(frozen=True, slots=True)
class ReflectorSpec:
    wiring: str
    offset: int = 0
    name: str | None = None

    @classmethod
    def named(cls, name: str, offset: int = 0) -> "ReflectorSpec":
        try:
            wiring = reflector_dict[name]
        except KeyError:
            raise InvalidConfiguration(f"Unknown reflector {name!r}") from None
        return cls(wiring, offset, name.upper())

    def build(self) -> Reflector:
        return Reflector(self.wiring, self.offset, name=self.name)

    @property
    def label(self) -> str:
        return self.name or self.wiring[:6].upper() + "…"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"wiring": self.wiring, "offset": self.offset}
        if self.name:
            out["name"] = self.name
        return out


def _normalise_pairs(pairs: Iterable[str | Sequence[str]] | str) -> tuple[tuple[str, str], ...]:
    if isinstance(pairs, str):
        pairs = pairs.split()
    elif not isinstance(pairs, (list, tuple)):
        raise InvalidConfiguration(f"Plugboard {pairs!r} must be a string or a list of pairs")
    out = []
    for raw in pairs:
        if not isinstance(raw, (str, list, tuple)) or len(raw) != 2:
            raise InvalidConfiguration(f"Plugboard pair {raw!r} must be exactly 2 symbols")
        a, b = raw
        if not isinstance(a, str) or not isinstance(b, str):
            raise InvalidConfiguration(f"Plugboard pair {raw!r} must hold letters")
        out.append((a.upper(), b.upper()))
    return tuple(out)


@dataclass(frozen=True, slots=True)
class Configuration:
    rotors: tuple[RotorSpec, ...]
    reflector: ReflectorSpec
    plugboard_pairs: tuple[tuple[str, str], ...] = field(default=())
    double_step: bool = True
    left_notch: bool = False

    # ── assembly ─────────────────────────────────────────────────
    def build_machine(self) -> Machine:
        """A fresh machine at this configuration's starting offsets."""
        if len(self.rotors) != 3:
            raise InvalidConfiguration(f"Need exactly 3 rotors, got {len(self.rotors)}")
        try:
            rotors = [spec.build() for spec in self.rotors]
            reflector = self.reflector.build()
            plugboard = Plugboard(self.plugboard_pairs)
        except InvalidPermutation as err:
            raise InvalidConfiguration(f"Invalid machine settings: {err}") from err
        bank = RotorBank(rotors, double_step=self.double_step, left_notch=self.left_notch)
        return Machine(plugboard, bank, reflector)

    def validate(self) -> "Configuration":
        self.build_machine()
        return self

    # ── derived configurations ───────────────────────────────────
    @property
    def offsets(self) -> tuple[int, ...]:
        return tuple(to_index(r.offset) for r in self.rotors)

    @property
    def rings(self) -> tuple[int, ...]:
        return tuple(to_index(r.ring) for r in self.rotors)

    def with_offsets(self, offsets: Sequence[int | str]) -> "Configuration":
        return replace(self, rotors=tuple(r.at(offset=o) for r, o in zip(self.rotors, offsets)))

    def with_rings(self, rings: Sequence[int | str]) -> "Configuration":
        return replace(self, rotors=tuple(r.at(ring=g) for r, g in zip(self.rotors, rings)))

    def with_plugboard(self, pairs: Iterable[str | Sequence[str]]) -> "Configuration":
        return replace(self, plugboard_pairs=_normalise_pairs(pairs))

    def describe(self) -> str:
        names = " ".join(r.label for r in self.rotors)
        window = "".join(ALPHABET[o] for o in self.offsets)
        rings = "".join(ALPHABET[g] for g in self.rings)
        plugs = " ".join(a + b for a, b in self.plugboard_pairs) or "-"
        return (f"rotors={names} window={window} rings={rings} "
                f"reflector={self.reflector.label}@{self.reflector.offset} plugs={plugs}")

    # ── (de)serialisation ────────────────────────────────────────
    def to_dict(self) -> dict[str, Any]:
        return {
            "rotors": [r.to_dict() for r in self.rotors],
            "reflector": self.reflector.to_dict(),
            "plugboard": [a + b for a, b in self.plugboard_pairs],
            "double_step": self.double_step,
            "left_notch": self.left_notch,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Configuration":
        if not isinstance(data, dict):
            raise InvalidConfiguration("Configuration must be a JSON object")
        missing = REQUIRED_KEYS - data.keys()
        if missing:
            raise InvalidConfiguration(f"Missing keys in config: {', '.join(sorted(missing))}")
        rotors = data["rotors"]
        if not isinstance(rotors, list) or len(rotors) != 3:
            raise InvalidConfiguration("'rotors' must list exactly 3 rotors, left to right")

        cfg = cls(
            rotors=tuple(_rotor_from(entry) for entry in rotors),
            reflector=_reflector_from(data["reflector"]),
            plugboard_pairs=_normalise_pairs(data.get("plugboard", ())),
            double_step=_flag(data, "double_step", True),
            left_notch=_flag(data, "left_notch", False),
        )
        cfg.validate()
        debug.log("config", cfg.describe())
        return cfg


def _flag(data: dict, key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise InvalidConfiguration(f"'{key}' must be true or false, got {value!r}")
    return value


def _wiring(value: Any, what: str) -> str:
    """Wiring as letters; a list of indices 0–25 is spelled out."""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(
        isinstance(i, int) and not isinstance(i, bool) and 0 <= i < len(ALPHABET) for i in value
    ):
        return "".join(ALPHABET[i] for i in value)
    raise InvalidConfiguration(f"{what} wiring {value!r} must be letters or a list of indices 0–25")


def _notch(value: Any) -> str | int | tuple:
    if isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool)):
        return value
    if isinstance(value, list):
        return tuple(value)
    raise InvalidConfiguration(f"Rotor notch {value!r} must be a letter, an index or a list")


def _name(entry: dict) -> str | None:
    name = entry.get("name")
    if name is not None and not isinstance(name, str):
        raise InvalidConfiguration(f"Wheel name {name!r} must be a string")
    return name


def _rotor_from(entry: str | dict) -> RotorSpec:
    if isinstance(entry, str):
        return RotorSpec.named(entry)
    if not isinstance(entry, dict):
        raise InvalidConfiguration(f"Rotor entry {entry!r} must be a name or an object")
    offset = entry.get("offset", 0)
    ring = entry.get("ring", 0)
    if "wiring" not in entry:
        if "name" not in entry:
            raise InvalidConfiguration(f"Rotor entry {entry!r} needs 'wiring' or 'name'")
        return RotorSpec.named(_name(entry), offset, ring)
    if "notch" not in entry:
        raise InvalidConfiguration(f"Rotor entry {entry!r} is missing 'notch'")
    wiring = _wiring(entry["wiring"], "Rotor")
    return RotorSpec(wiring, _notch(entry["notch"]), offset, ring, _name(entry))


def _reflector_from(entry: str | dict) -> ReflectorSpec:
    if isinstance(entry, str):
        return ReflectorSpec.named(entry)
    if not isinstance(entry, dict):
        raise InvalidConfiguration(f"Reflector entry {entry!r} must be a name or an object")
    offset = entry.get("offset", 0)
    if "wiring" not in entry:
        if "name" not in entry:
            raise InvalidConfiguration("Reflector entry needs 'wiring' or 'name'")
        return ReflectorSpec.named(_name(entry), offset)
    return ReflectorSpec(_wiring(entry["wiring"], "Reflector"), offset, _name(entry))


def load_config(path: str | Path) -> Configuration:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        raise InvalidConfiguration(f"{path}: not valid JSON ({err})") from err
    return Configuration.from_dict(data)


def save_config(cfg: Configuration, path: str | Path) -> None:
    Path(path).write_text(json.dumps(cfg.to_dict(), indent=2), encoding="utf-8")
