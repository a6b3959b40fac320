"""Reusable playback handle and its play-and-wait protocol.

A handle wraps one audio source owned by the pool and cycles through::

    IDLE -> RESERVED -> PLAYING -> FINISHING -> IDLE

``start()`` configures the source and launches a release task on the
cooperative scheduler.  The task waits for the expected duration plus a
release margin, then polls the source until it reports that it has stopped.
Only then is the handle given back to the pool and the request's completion
callback invoked.  In ``Following`` mode a second task copies the target's
position into the source once per tick until the release is confirmed.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, List, Optional, Self

from engine.scheduler import Coroutine, CoroutineScheduler, Task, WaitForSeconds
from sfx.errors import InvariantViolation
from sfx.types import (
    FinishedCallback,
    FixedPosition,
    Following,
    Positioned,
    SoundKey,
    SoundVariant,
    SpatialMode,
    Vector3,
)

if TYPE_CHECKING:
    from sfx.backends import AudioSource
    from sfx.observer import SoundObserver

RELEASE_MARGIN = 0.05
RETRY_RELEASE_WAIT = 0.1


class HandleState(Enum):
    IDLE = auto()
    RESERVED = auto()
    PLAYING = auto()
    FINISHING = auto()


def expected_duration(buffer_length: float, pitch: float) -> float:
    """Seconds a buffer plays for at ``pitch``.

    Negative pitch plays in reverse at the same speed, hence ``abs``.  At zero
    pitch the buffer never ends, so the release relies on polling alone.
    """
    if pitch == 0:
        return 0.0
    return abs(buffer_length / pitch)


class PlaybackHandle:
    """One pooled audio source. Callers may observe it but must not drive it."""

    def __init__(
        self: Self,
        source: "AudioSource",
        scheduler: CoroutineScheduler,
        release: Callable[["PlaybackHandle"], None],
        name: str = "SoundPlayer",
        release_margin: float = RELEASE_MARGIN,
        retry_release_wait: float = RETRY_RELEASE_WAIT,
        observer: Optional["SoundObserver"] = None,
    ):
        self.source = source
        self.name = name
        self.origin: Vector3 = tuple(source.position)
        self._scheduler = scheduler
        self._release = release
        self._release_margin = release_margin
        self._retry_release_wait = retry_release_wait
        self._observer = observer

        self._state = HandleState.IDLE
        self._cycle = 0
        self._tasks: List[Task] = []
        self._sound_type: Optional[SoundKey] = None
        self._on_finished: Optional[FinishedCallback] = None
        self._spatial: SpatialMode = None
        self.volume: float = 0.0
        self.pitch: float = 0.0
        self.expected_duration: float = 0.0
        self.plays: int = 0

    # --- Read-only view ---
    @property
    def state(self: Self) -> HandleState:
        return self._state

    @property
    def is_busy(self: Self) -> bool:
        return self._state is not HandleState.IDLE

    @property
    def sound_type(self: Self) -> Optional[SoundKey]:
        return self._sound_type

    @property
    def position(self: Self) -> Vector3:
        return tuple(self.source.position)

    # --- Pool transitions ---
    def mark_reserved(self: Self) -> None:
        if self._state is not HandleState.IDLE:
            raise InvariantViolation(f"{self.name} reserved while {self._state.name}")
        self._state = HandleState.RESERVED

    def mark_idle(self: Self) -> None:
        if self._state is not HandleState.FINISHING:
            raise InvariantViolation(
                f"{self.name} returned to the pool while {self._state.name}"
            )
        self._state = HandleState.IDLE

    # --- Playback ---
    def start(
        self: Self,
        sound_type: SoundKey,
        variant: SoundVariant,
        volume: float,
        pitch: float,
        spatial: SpatialMode = None,
        on_finished: Optional[FinishedCallback] = None,
    ) -> None:
        """RESERVED -> PLAYING: configure the source, play, schedule release."""
        if self._state is not HandleState.RESERVED:
            raise InvariantViolation(f"{self.name} started while {self._state.name}")

        self._cycle += 1
        self._sound_type = sound_type
        self._on_finished = on_finished
        self._spatial = spatial
        self.volume = volume
        self.pitch = pitch

        self.source.configure(variant.buffer, pitch, volume)
        if isinstance(spatial, FixedPosition):
            self.source.position = spatial.point
        elif isinstance(spatial, Following):
            self.source.position = spatial.target.position

        self.expected_duration = expected_duration(variant.buffer.length, pitch)
        self._state = HandleState.PLAYING
        self.plays += 1
        self._tasks = [
            self._scheduler.start(
                self._release_when_stopped(self._cycle),
                name=f"{self.name}-release",
            )
        ]
        if isinstance(spatial, Following):
            self._tasks.append(
                self._scheduler.start(
                    self._follow(spatial.target, self._cycle),
                    name=f"{self.name}-follow",
                )
            )
        self.source.play()

    def _release_when_stopped(self: Self, cycle: int) -> Coroutine:
        yield WaitForSeconds(self.expected_duration + self._release_margin)
        self._state = HandleState.FINISHING

        # Never release a source that is still in use.
        extra_waits = 0
        while self.source.is_playing():
            extra_waits += 1
            if self._observer is not None:
                self._observer.release_delayed(self.name, extra_waits)
            yield WaitForSeconds(self._retry_release_wait)

        if self._cycle == cycle:
            self._tasks = []
            self._finish()

    def _follow(self: Self, target: Positioned, cycle: int) -> Coroutine:
        while True:
            yield None
            if self._cycle != cycle or self._state is HandleState.IDLE:
                return
            self.source.position = target.position

    def stop(self: Self) -> None:
        """Stop playback now and release the handle without waiting."""
        if self._state not in (HandleState.PLAYING, HandleState.FINISHING):
            raise InvariantViolation(
                f"{self.name} has no active playback to stop ({self._state.name})"
            )
        self._state = HandleState.FINISHING
        self.force_release()

    def force_release(self: Self) -> None:
        """FINISHING -> IDLE now: stop the source and drop the pending tasks.

        Used by :meth:`stop`, and valid on its own while the release task is
        still waiting for the source to confirm that it stopped.
        """
        if self._state is not HandleState.FINISHING:
            raise InvariantViolation(
                f"{self.name} cannot be released while {self._state.name}"
            )
        self.source.stop()
        for task in self._tasks:
            task.cancel()
        self._tasks = []
        self._finish()

    def _finish(self: Self) -> None:
        """Reset, return to the pool, notify the requester."""
        if self._spatial is not None:
            self.source.position = self.origin

        sound_type = self._sound_type
        on_finished = self._on_finished
        self._sound_type = None
        self._on_finished = None
        self._spatial = None

        self._release(self)
        if on_finished is not None:
            on_finished(sound_type)

    def __repr__(self: Self) -> str:
        return f"<PlaybackHandle {self.name} {self._state.name}>"
