"""Value types shared by the pooled sound-effect player."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Callable, Hashable, Optional, Protocol, Tuple, Union

if TYPE_CHECKING:
    from sfx.buffers import AudioBuffer

Vector3 = Tuple[float, float, float]
ORIGIN: Vector3 = (0.0, 0.0, 0.0)

SoundKey = Hashable
FinishedCallback = Callable[[Any], None]


class GameSound(StrEnum):
    """Sound types the game can request.

    Any hashable value works as a sound key; this enum is the set the bundled
    config and the completeness check use by default.  ``NONE`` is the
    "nothing selected" value and can never be played.
    """

    NONE = "none"
    EXPLOSION = "explosion"
    FOOTSTEP = "footstep"
    DOOR_OPEN = "door_open"
    DOOR_CLOSE = "door_close"
    SWORD_HIT = "sword_hit"
    PICKUP = "pickup"
    CLICK = "click"


def is_none_sound(key: Any) -> bool:
    """True for keys that mean "no sound": ``None``, ``""`` and ``"none"``."""
    return key is None or key == "" or key == GameSound.NONE


@dataclass(frozen=True)
class SoundVariant:
    """One playable clip registered for a sound type.

    ``volume`` and ``pitch`` are drawn uniformly from the low/high ranges on
    every play.  A negative pitch plays the buffer in reverse.
    """

    sound_type: SoundKey
    buffer: Optional["AudioBuffer"]
    volume_low: float = 1.0
    volume_high: float = 1.0
    pitch_low: float = 1.0
    pitch_high: float = 1.0

    def has_valid_ranges(self) -> bool:
        return (
            0.0 <= self.volume_low <= self.volume_high
            and self.pitch_low <= self.pitch_high
        )


class Positioned(Protocol):
    """Anything with a readable world position (the target of Following)."""

    @property
    def position(self) -> Vector3: ...


@dataclass(frozen=True)
class FixedPosition:
    """Play at ``point``; the handle does not move while playing."""

    point: Vector3


@dataclass(frozen=True)
class Following:
    """Track ``target.position`` every tick while playing."""

    target: Positioned


SpatialMode = Union[FixedPosition, Following, None]


@dataclass(frozen=True)
class PlayRequest:
    sound_type: SoundKey
    volume_multiplier: float = 1.0
    pitch_multiplier: float = 1.0
    spatial: SpatialMode = None
    on_finished: Optional[FinishedCallback] = None


__all__ = [
    "FinishedCallback",
    "FixedPosition",
    "Following",
    "GameSound",
    "ORIGIN",
    "PlayRequest",
    "Positioned",
    "SoundKey",
    "SoundVariant",
    "SpatialMode",
    "Vector3",
    "is_none_sound",
]
