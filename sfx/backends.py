"""Audio source interfaces and the headless simulated backend.

The player drives any object satisfying :class:`AudioSource`; it never creates
sources itself but asks a :class:`SourceFactory`.  :class:`SimulatedSource`
keeps no audio at all: it reports itself as playing for as long as the
configured buffer would take at the configured pitch, measured on the
scheduler's clock.  It backs the demo and the tests, and can be told to
overrun its expected end to exercise the release retry loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from engine.scheduler import TIME_EPSILON, CoroutineScheduler
from sfx.handle import expected_duration
from sfx.types import ORIGIN, Vector3

if TYPE_CHECKING:
    from sfx.buffers import AudioBuffer


class AudioSource(Protocol):
    position: Vector3

    def configure(self, buffer: "AudioBuffer", pitch: float, volume: float) -> None: ...

    def play(self) -> None: ...

    def stop(self) -> None: ...

    def is_playing(self) -> bool: ...


class SourceFactory(Protocol):
    def create(self) -> AudioSource: ...


class SimulatedSource:
    """Audio source whose playback is simulated on a scheduler clock."""

    def __init__(
        self,
        clock: CoroutineScheduler,
        position: Vector3 = ORIGIN,
        overrun: float = 0.0,
    ) -> None:
        self._clock = clock
        self.position: Vector3 = position
        self.overrun = overrun
        self.buffer: Optional["AudioBuffer"] = None
        self.pitch: float = 1.0
        self.volume: float = 1.0
        self._started_at: Optional[float] = None
        self._ends_at: Optional[float] = None
        self.plays = 0
        self.overlaps = 0

    def configure(self, buffer: "AudioBuffer", pitch: float, volume: float) -> None:
        self.buffer = buffer
        self.pitch = pitch
        self.volume = volume

    def play(self) -> None:
        if self.buffer is None:
            raise RuntimeError("SimulatedSource.play() called before configure()")
        if self.is_playing():
            self.overlaps += 1
        self.plays += 1
        self._started_at = self._clock.time
        if self.pitch == 0:
            self._ends_at = None
        else:
            self._ends_at = (
                self._started_at
                + expected_duration(self.buffer.length, self.pitch)
                + self.overrun
            )

    def stop(self) -> None:
        self._started_at = None
        self._ends_at = None

    def is_playing(self) -> bool:
        if self._started_at is None:
            return False
        if self._ends_at is None:
            return True
        return self._clock.time + TIME_EPSILON < self._ends_at


class SimulatedSourceFactory:
    """Creates :class:`SimulatedSource` objects sharing one scheduler clock."""

    def __init__(
        self,
        clock: CoroutineScheduler,
        origin: Vector3 = ORIGIN,
        overrun: float = 0.0,
    ) -> None:
        self.clock = clock
        self.origin = origin
        self.overrun = overrun
        self.created: list[SimulatedSource] = []

    def create(self) -> SimulatedSource:
        source = SimulatedSource(self.clock, position=self.origin, overrun=self.overrun)
        self.created.append(source)
        return source
