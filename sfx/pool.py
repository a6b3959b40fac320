"""Pool of idle playback handles.

Handles are created through an injected :class:`~sfx.backends.SourceFactory`
and are never destroyed; the pool only grows.  The idle stack is the single
source of truth for whether a sound can play right now: a handle is on it
exactly when its state is ``IDLE``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Self

from engine.scheduler import CoroutineScheduler
from sfx.errors import InvariantViolation
from sfx.handle import RELEASE_MARGIN, RETRY_RELEASE_WAIT, PlaybackHandle
from sfx.types import Vector3

if TYPE_CHECKING:
    from sfx.backends import SourceFactory
    from sfx.observer import SoundObserver

HANDLE_NAME_BASE = "SoundPlayer"


class HandlePool:
    def __init__(
        self: Self,
        factory: "SourceFactory",
        scheduler: CoroutineScheduler,
        can_grow: bool = True,
        initial_size: int = 0,
        size_hint: Optional[int] = None,
        origin: Optional[Vector3] = None,
        release_margin: float = RELEASE_MARGIN,
        retry_release_wait: float = RETRY_RELEASE_WAIT,
        observer: Optional["SoundObserver"] = None,
    ):
        if initial_size < 0:
            raise ValueError("initial_size must be non-negative")
        self._factory = factory
        self._scheduler = scheduler
        self._can_grow = can_grow
        self._release_margin = release_margin
        self._retry_release_wait = retry_release_wait
        self._observer = observer
        self._origin = origin
        self._handles: List[PlaybackHandle] = []
        self._idle: List[PlaybackHandle] = []
        if size_hint is None:
            size_hint = initial_size
        self.capacity_hint: int = size_hint * 2 if can_grow else size_hint
        self.peak_busy: int = 0
        if initial_size:
            self.grow(initial_size)

    @property
    def can_grow(self: Self) -> bool:
        return self._can_grow

    @property
    def size(self: Self) -> int:
        return len(self._handles)

    @property
    def idle_count(self: Self) -> int:
        return len(self._idle)

    @property
    def busy_count(self: Self) -> int:
        return len(self._handles) - len(self._idle)

    @property
    def handles(self: Self) -> tuple[PlaybackHandle, ...]:
        return tuple(self._handles)

    def busy_handles(self: Self) -> List[PlaybackHandle]:
        return [h for h in self._handles if h.is_busy]

    def grow(self: Self, n: int = 1) -> None:
        """Create ``n`` new handles and push them idle.

        With an ``origin`` set, each new source is moved there first; it becomes
        the handle's rest position.
        """
        for _ in range(n):
            source = self._factory.create()
            if self._origin is not None:
                source.position = self._origin
            handle = PlaybackHandle(
                source,
                self._scheduler,
                release=self.release,
                name=f"{HANDLE_NAME_BASE}{len(self._handles) + 1}",
                release_margin=self._release_margin,
                retry_release_wait=self._retry_release_wait,
                observer=self._observer,
            )
            self._handles.append(handle)
            self._idle.append(handle)

    def reserve(self: Self) -> Optional[PlaybackHandle]:
        """Pop the most recently released idle handle, or ``None``."""
        if not self._idle:
            return None
        handle = self._idle.pop()
        handle.mark_reserved()
        busy = self.busy_count
        if busy > self.peak_busy:
            self.peak_busy = busy
        return handle

    def release(self: Self, handle: PlaybackHandle) -> None:
        """Push a FINISHING handle back onto the idle stack."""
        if any(h is handle for h in self._idle):
            raise InvariantViolation(f"{handle.name} released twice")
        if not any(h is handle for h in self._handles):
            raise InvariantViolation(f"{handle.name} does not belong to this pool")
        handle.mark_idle()
        self._idle.append(handle)
