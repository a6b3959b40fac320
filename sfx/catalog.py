"""Lookup table from sound type to the variants registered for it."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Self, Tuple, Type

from sfx.errors import InvalidRange, InvalidSoundType, MissingBuffer, SoundError
from sfx.observer import SoundObserver
from sfx.types import SoundKey, SoundVariant, is_none_sound


class SoundCatalog:
    """Maps each sound type to its variants, in registration order.

    Invalid entries are skipped, never fatal: an empty catalog is a legal (if
    useless) state.  With an observer attached each skip is reported and kept
    in ``skipped``; without one nothing is recorded.
    """

    def __init__(self: Self, observer: Optional[SoundObserver] = None):
        self._observer = observer
        self._map: Dict[SoundKey, List[SoundVariant]] = {}
        self.skipped: List[Tuple[SoundVariant, Type[SoundError]]] = []

    @classmethod
    def build(
        cls,
        variants: Iterable[SoundVariant],
        observer: Optional[SoundObserver] = None,
    ) -> "SoundCatalog":
        catalog = cls(observer)
        catalog.rebuild(variants)
        return catalog

    def rebuild(self: Self, variants: Iterable[SoundVariant]) -> Self:
        """Clear the map and repopulate it from ``variants``."""
        self._map.clear()
        self.skipped.clear()

        for variant in variants:
            reason = self._rejection_reason(variant)
            if reason is not None:
                if self._observer is not None:
                    self.skipped.append((variant, reason))
                    self._observer.variant_skipped(variant, reason)
                continue
            self._map.setdefault(variant.sound_type, []).append(variant)

        if not self._map and self._observer is not None:
            self._observer.empty_catalog()
        return self

    @staticmethod
    def _rejection_reason(variant: SoundVariant) -> Optional[Type[SoundError]]:
        if is_none_sound(variant.sound_type):
            return InvalidSoundType
        if variant.buffer is None:
            return MissingBuffer
        if not variant.has_valid_ranges():
            return InvalidRange
        return None

    def check_completeness(self: Self, all_known_keys: Iterable[SoundKey]) -> List[SoundKey]:
        """Return the known sound types that have no variant registered."""
        return [
            key
            for key in all_known_keys
            if not is_none_sound(key) and key not in self._map
        ]

    def variants_for(self: Self, sound_type: SoundKey) -> List[SoundVariant]:
        return self._map.get(sound_type, [])

    def counts(self: Self) -> Dict[SoundKey, int]:
        return {key: len(variants) for key, variants in self._map.items()}

    @property
    def is_empty(self: Self) -> bool:
        return not self._map

    def __contains__(self: Self, sound_type: object) -> bool:
        return sound_type in self._map

    def __len__(self: Self) -> int:
        return len(self._map)

    def __iter__(self: Self) -> Iterator[SoundKey]:
        return iter(self._map)
