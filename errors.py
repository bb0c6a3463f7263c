# errors.py
from __future__ import annotations


class InvalidPermutation(ValueError):
    """A sequence or swap set that does not describe a bijection over the alphabet."""


class InvalidConfiguration(ValueError):
    """Machine settings that cannot be assembled into a working machine."""


class InvalidSearchSpace(ValueError):
    """Search constraints that leave nothing (or nothing sensible) to try."""


__all__ = ["InvalidPermutation", "InvalidConfiguration", "InvalidSearchSpace"]
