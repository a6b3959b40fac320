"""Seedable random number generator used by the sound scheduler.

Every random draw the playback code makes (which variant of a sound to use,
and the pitch and volume it is played at) goes through a :class:`GameRNG`
instance, so a run can be reproduced by passing the same seed.  The generator
wraps :func:`numpy.random.default_rng`; state can be saved and restored for
replays and tests.
"""

from __future__ import annotations

import json
import random
from typing import Any, Dict, List, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class GameRNG:
    def __init__(self, seed: Optional[int] = None) -> None:
        self.initial_seed = seed if seed is not None else random.randint(0, 2**32 - 1)
        self.rng = np.random.default_rng(self.initial_seed)
        self.draws = 0

    # ------------------------------------------------------------------
    # basic random helpers
    # ------------------------------------------------------------------
    def get_int(self, a: int, b: int) -> int:
        """Return an integer in the closed range ``[a, b]``."""
        if a > b:
            raise ValueError("a <= b")
        self.draws += 1
        return int(self.rng.integers(a, b + 1))

    def get_float(self, a: float = 0.0, b: float = 1.0) -> float:
        """Return a float in ``[a, b)``; ``a == b`` always yields ``a``."""
        if a > b:
            raise ValueError("a <= b")
        if a == b:
            return float(a)
        self.draws += 1
        return a + (b - a) * float(self.rng.random())

    def choice(self, seq: Sequence[T]) -> T:
        """Return a uniformly chosen element of *seq*."""
        if not seq:
            raise ValueError("cannot choose from an empty sequence")
        if len(seq) == 1:
            return seq[0]
        return seq[self.get_int(0, len(seq) - 1)]

    def shuffle(self, seq: List[Any]) -> None:
        self.rng.shuffle(seq)

    # ------------------------------------------------------------------
    # state management
    # ------------------------------------------------------------------
    def get_state(self) -> Dict[str, Any]:
        return {
            "random_state": self.rng.bit_generator.state,
            "initial_seed": self.initial_seed,
        }

    def set_state(self, state: Dict[str, Any]) -> None:
        if "random_state" in state:
            self.rng.bit_generator.state = state["random_state"]
        if "initial_seed" in state:
            self.initial_seed = state["initial_seed"]

    def save_state_to_file(self, filename: str) -> None:
        with open(filename, "w", encoding="utf-8") as f:
            json.dump(self.get_state(), f, indent=2)

    def load_state_from_file(self, filename: str) -> None:
        with open(filename, "r", encoding="utf-8") as f:
            state = json.load(f)
        self.set_state(state)

    def reset(self, seed: Optional[int] = None) -> None:
        self.initial_seed = seed if seed is not None else random.randint(0, 2**32 - 1)
        self.rng = np.random.default_rng(self.initial_seed)
        self.draws = 0


__all__ = ["GameRNG"]
