"""Observers receiving diagnostics from the sound player.

The manager, catalog, pool and handles all accept an optional observer.  When
it is ``None`` no notification is built at all; every call site checks for
``None`` first.
"""

from __future__ import annotations

from typing import Any, List, Protocol, Sequence, Tuple, Type

import structlog

from sfx.errors import (
    EmptyCatalog,
    InvalidSoundType,
    PoolExhausted,
    SoundError,
    UnknownSoundType,
)
from sfx.types import SoundKey, SoundVariant


class SoundObserver(Protocol):
    def empty_catalog(self) -> None: ...

    def variant_skipped(self, variant: SoundVariant, reason: Type[SoundError]) -> None: ...

    def unassigned_sound_types(self, sound_types: Sequence[SoundKey]) -> None: ...

    def played_before_initialized(self, sound_type: SoundKey) -> None: ...

    def invalid_sound_type(self, sound_type: SoundKey) -> None: ...

    def unknown_sound_type(self, sound_type: SoundKey) -> None: ...

    def pool_exhausted(self, sound_type: SoundKey) -> None: ...

    def pool_grown(self, pool_size: int) -> None: ...

    def release_delayed(self, handle_name: str, extra_waits: int) -> None: ...


class StructlogObserver:
    """Reports every notification as a structlog event."""

    def __init__(self, logger: Any = None) -> None:
        self.log = logger if logger is not None else structlog.get_logger("sfx")

    def empty_catalog(self) -> None:
        self.log.warning(EmptyCatalog.message, reason=EmptyCatalog.__name__)

    def variant_skipped(self, variant: SoundVariant, reason: Type[SoundError]) -> None:
        self.log.warning(
            reason.message,
            reason=reason.__name__,
            sound_type=str(variant.sound_type),
        )

    def unassigned_sound_types(self, sound_types: Sequence[SoundKey]) -> None:
        self.log.warning(
            "No sound is set for some sound types",
            sound_types=[str(s) for s in sound_types],
        )

    def played_before_initialized(self, sound_type: SoundKey) -> None:
        self.log.warning(
            "Sound playback was requested before the SoundManager was initialized. "
            "Initializing now.",
            sound_type=str(sound_type),
        )

    def invalid_sound_type(self, sound_type: SoundKey) -> None:
        self.log.warning(
            InvalidSoundType.message,
            reason=InvalidSoundType.__name__,
            sound_type=str(sound_type),
        )

    def unknown_sound_type(self, sound_type: SoundKey) -> None:
        self.log.warning(
            UnknownSoundType.message,
            reason=UnknownSoundType.__name__,
            sound_type=str(sound_type),
        )

    def pool_exhausted(self, sound_type: SoundKey) -> None:
        self.log.warning(
            PoolExhausted.message,
            reason=PoolExhausted.__name__,
            sound_type=str(sound_type),
        )

    def pool_grown(self, pool_size: int) -> None:
        self.log.warning(
            "All playback handles were busy; a new one was created. "
            "If you see this often, increase the initial pool size.",
            pool_size=pool_size,
        )

    def release_delayed(self, handle_name: str, extra_waits: int) -> None:
        self.log.warning(
            "Playback handle wasn't ready for release at the expected time. "
            "If you see this often, increase release_margin.",
            handle=handle_name,
            extra_waits=extra_waits,
        )


class RecordingObserver:
    """Keeps notifications in memory as ``(event, payload)`` pairs."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def count(self, name: str) -> int:
        return sum(1 for event, _ in self.events if event == name)

    def clear(self) -> None:
        self.events.clear()

    def empty_catalog(self) -> None:
        self.events.append(("empty_catalog", None))

    def variant_skipped(self, variant: SoundVariant, reason: Type[SoundError]) -> None:
        self.events.append(("variant_skipped", (variant, reason)))

    def unassigned_sound_types(self, sound_types: Sequence[SoundKey]) -> None:
        self.events.append(("unassigned_sound_types", list(sound_types)))

    def played_before_initialized(self, sound_type: SoundKey) -> None:
        self.events.append(("played_before_initialized", sound_type))

    def invalid_sound_type(self, sound_type: SoundKey) -> None:
        self.events.append(("invalid_sound_type", sound_type))

    def unknown_sound_type(self, sound_type: SoundKey) -> None:
        self.events.append(("unknown_sound_type", sound_type))

    def pool_exhausted(self, sound_type: SoundKey) -> None:
        self.events.append(("pool_exhausted", sound_type))

    def pool_grown(self, pool_size: int) -> None:
        self.events.append(("pool_grown", pool_size))

    def release_delayed(self, handle_name: str, extra_waits: int) -> None:
        self.events.append(("release_delayed", (handle_name, extra_waits)))


__all__ = ["RecordingObserver", "SoundObserver", "StructlogObserver"]
