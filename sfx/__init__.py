"""Pooled sound-effect playback.

Short effects are played on reusable handles taken from a growable pool, with
per-play randomized pitch and volume.  Handles release themselves back to the
pool once their audio source confirms that playback stopped; timing is driven
by :class:`engine.scheduler.CoroutineScheduler` ticks.
"""

from sfx.backends import AudioSource, SimulatedSource, SimulatedSourceFactory, SourceFactory
from sfx.buffers import AudioBuffer, load_buffer
from sfx.catalog import SoundCatalog
from sfx.config import SoundManagerConfig, load_sound_config
from sfx.errors import (
    EmptyCatalog,
    InvalidRange,
    InvalidSoundType,
    InvariantViolation,
    MissingBuffer,
    PoolExhausted,
    SoundError,
    UnknownSoundType,
)
from sfx.handle import HandleState, PlaybackHandle, expected_duration
from sfx.manager import SoundManager
from sfx.observer import RecordingObserver, SoundObserver, StructlogObserver
from sfx.pool import HandlePool
from sfx.selector import VariantSelector
from sfx.types import (
    FixedPosition,
    Following,
    GameSound,
    PlayRequest,
    SoundVariant,
    is_none_sound,
)

__all__ = [
    "AudioBuffer",
    "AudioSource",
    "EmptyCatalog",
    "FixedPosition",
    "Following",
    "GameSound",
    "HandlePool",
    "HandleState",
    "InvalidRange",
    "InvalidSoundType",
    "InvariantViolation",
    "MissingBuffer",
    "PlayRequest",
    "PlaybackHandle",
    "PoolExhausted",
    "RecordingObserver",
    "SimulatedSource",
    "SimulatedSourceFactory",
    "SoundCatalog",
    "SoundError",
    "SoundManager",
    "SoundManagerConfig",
    "SoundObserver",
    "SoundVariant",
    "SourceFactory",
    "StructlogObserver",
    "UnknownSoundType",
    "VariantSelector",
    "expected_duration",
    "is_none_sound",
    "load_buffer",
    "load_sound_config",
]
