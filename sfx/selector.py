from __future__ import annotations

from typing import Sequence, Tuple

from game_rng import GameRNG
from sfx.types import SoundVariant


class VariantSelector:
    """Chooses which variant to play and the pitch/volume to play it at."""

    def __init__(self, rng: GameRNG) -> None:
        self.rng = rng

    def pick(self, variants: Sequence[SoundVariant]) -> SoundVariant:
        return self.rng.choice(variants)

    def derive(
        self,
        variant: SoundVariant,
        volume_multiplier: float = 1.0,
        pitch_multiplier: float = 1.0,
    ) -> Tuple[float, float]:
        """Return ``(volume, pitch)``, drawn independently on every call."""
        volume = self.rng.get_float(variant.volume_low, variant.volume_high)
        pitch = self.rng.get_float(variant.pitch_low, variant.pitch_high)
        return volume * volume_multiplier, pitch * pitch_multiplier
