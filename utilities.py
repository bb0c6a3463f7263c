# utilities.py
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from permutation import ALPHABET

# ────────────────────────────────────────────────────────────────────────
#  0. Regex & trivial helpers
# ────────────────────────────────────────────────────────────────────────

_num_re = re.compile(r"^([A-Za-z]+)(\d+)$")
_roman = {"I": 1, "II": 2, "III": 3, "IV": 4, "V": 5, "VI": 6, "VII": 7, "VIII": 8}


def _nat_key(name: str):
    """Natural‑sort wheel names so I, II, …, VIII come first, then R1, R2, …"""
    if name.upper() in _roman:
        return (0, "", _roman[name.upper()])
    m = _num_re.match(name)
    if m:
        prefix, num = m.groups()
        return (1, prefix, int(num))
    return (2, name, 0)


def sorted_names(names) -> List[str]:
    return sorted(set(names), key=_nat_key)


# ────────────────────────────────────────────────────────────────────────
#  1. Text preprocessing
# ────────────────────────────────────────────────────────────────────────


def preprocess_message(msg: str, alpha: str = ALPHABET) -> str:
    """Upper‑case and drop every character outside the alphabet."""
    return "".join(ch for ch in msg.upper() if ch in alpha)


def group_blocks(text: str, block: int = 5) -> str:
    """Traditional five-letter groups for display."""
    if block <= 0:
        return text
    return " ".join(text[i : i + block] for i in range(0, len(text), block))


def agreement(a: str, b: str) -> float:
    """Share of positions where *a* and *b* carry the same letter."""
    if not a or not b:
        return 0.0
    n = min(len(a), len(b))
    return sum(x == y for x, y in zip(a[:n], b[:n])) / n


# ────────────────────────────────────────────────────────────────────────
#  2. Wheel database
# ────────────────────────────────────────────────────────────────────────

# rotors: name → (wiring, notch letters) -----------------------------------
base_rotors: Dict[str, Tuple[str, str]] = {
    "I":    ("EKMFLGDQVZNTOWYHXUSPAIBRCJ", "Q"),
    "II":   ("AJDKSIRUXBLHWTMCQGZNPYFVOE", "E"),
    "III":  ("BDFHJLCPRTXVZNYEIWGAKMUSQO", "V"),
    "IV":   ("ESOVPZJAYQUIRHXLNFTGKDCMWB", "J"),
    "V":    ("VZBRGITYUPSDNHLXAWMJQOFECK", "Z"),
    "VI":   ("JPGVOUMFYQBENHZRDKASXLICTW", "ZM"),
    "VII":  ("NZJHGRCXMYSWBOUFAIVLPEKQDT", "ZM"),
    "VIII": ("FKQHTLXOCBJSPDZRAMEWNIUYGV", "ZM"),
}

# reflectors: name → direct-map wiring -------------------------------------
base_reflectors: Dict[str, str] = {
    "A": "EJMZALYXVBWFCRQUONTSPIKHGD",
    "B": "YRUHQSLDPXNGOKMIEBFZCWVJAT",
    "C": "FVPJIAOYEDRZXWGCTKUQSBNMHL",
}

# Build the lookup dicts -------------------------------------------------

rotor_dict: Dict[str, Tuple[str, str]] = {}
for name, entry in base_rotors.items():
    rotor_dict[name] = rotor_dict[name.lower()] = entry  # uppercase + alias

reflector_dict: Dict[str, str] = {}
for name, wiring in base_reflectors.items():
    reflector_dict[name] = reflector_dict[name.lower()] = wiring

__all__ = [
    "rotor_dict",
    "reflector_dict",
    "preprocess_message",
    "group_blocks",
    "sorted_names",
]
