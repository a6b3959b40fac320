"""Sound manager: the entry point for playing pooled sound effects.

Plays short, frequently repeated effects against a growable pool of reusable
playback handles.  A request is validated against the catalog, a variant is
chosen and given a randomized pitch and volume, a handle is reserved from the
pool (growing it if allowed) and started.  The handle comes back immediately;
it returns itself to the pool, and the request's ``on_finished`` callback
fires, once the audio source confirms that playback stopped.

Failures never raise out of :meth:`SoundManager.play`.  They return ``None``,
set :attr:`SoundManager.last_failure` and are reported to the observer, if one
is attached.

Example::

    scheduler = CoroutineScheduler()
    manager = SoundManager(SimulatedSourceFactory(scheduler), scheduler,
                           variant_source=lambda: variants)
    manager.initialize()
    handle = manager.play_sound(GameSound.EXPLOSION)
    scheduler.tick(1 / 60)  # once per frame
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Iterable,
    List,
    Optional,
    Self,
    Sequence,
    Tuple,
    Type,
)

from engine.scheduler import CoroutineScheduler
from game_rng import GameRNG
from sfx.catalog import SoundCatalog
from sfx.config import SoundManagerConfig, VariantSource
from sfx.errors import InvalidSoundType, PoolExhausted, SoundError, UnknownSoundType
from sfx.handle import HandleState, PlaybackHandle
from sfx.pool import HandlePool
from sfx.selector import VariantSelector
from sfx.types import (
    FinishedCallback,
    FixedPosition,
    Following,
    GameSound,
    PlayRequest,
    Positioned,
    SoundKey,
    SoundVariant,
    Vector3,
    is_none_sound,
)

if TYPE_CHECKING:
    from sfx.backends import SourceFactory
    from sfx.observer import SoundObserver


class SoundManager:
    def __init__(
        self: Self,
        source_factory: "SourceFactory",
        scheduler: CoroutineScheduler,
        config: Optional[SoundManagerConfig] = None,
        variant_source: Optional[VariantSource] = None,
        known_sound_types: Optional[Iterable[SoundKey]] = None,
        observer: Optional["SoundObserver"] = None,
        rng: Optional[GameRNG] = None,
    ):
        self.config = config if config is not None else SoundManagerConfig()
        self.scheduler = scheduler
        self._variant_source: VariantSource = (
            variant_source if variant_source is not None else list
        )
        self._known_sound_types: Tuple[SoundKey, ...] = tuple(
            known_sound_types if known_sound_types is not None else GameSound
        )
        self._observer = observer
        self.rng = rng if rng is not None else GameRNG(self.config.rng_seed)
        self.selector = VariantSelector(self.rng)
        self.catalog = SoundCatalog(observer)
        self.pool = HandlePool(
            source_factory,
            scheduler,
            can_grow=self.config.can_grow_pool,
            size_hint=self.config.initial_pool_size,
            origin=self.config.origin,
            release_margin=self.config.release_margin,
            retry_release_wait=self.config.retry_release_wait,
            observer=observer,
        )
        self.last_failure: Optional[Type[SoundError]] = None
        self._initialized = False

    @property
    def initialized(self: Self) -> bool:
        return self._initialized

    def initialize(self: Self) -> None:
        """Build the catalog and create the initial pool. Safe to call twice."""
        if self._initialized:
            return
        self.rebuild()
        self.pool.grow(self.config.initial_pool_size)
        self._initialized = True

    def rebuild(self: Self) -> None:
        """Re-read the variant source and repopulate the catalog."""
        self.catalog.rebuild(self._variant_source())
        if self.config.check_unassigned_sounds and self._observer is not None:
            missing = self.catalog.check_completeness(self._known_sound_types)
            if missing:
                self._observer.unassigned_sound_types(missing)

    # --- Playback ---
    def play(self: Self, request: PlayRequest) -> Optional[PlaybackHandle]:
        """
        Plays ``request`` and returns the handle playing it, or ``None``.
        The handle must only be observed, never reconfigured.
        """
        if not self._initialized:
            if self._observer is not None:
                self._observer.played_before_initialized(request.sound_type)
            self.initialize()

        failure, variants = self._check_playable(request.sound_type)
        if failure is not None:
            self.last_failure = failure
            if self._observer is not None:
                self._report_failure(failure, request.sound_type)
            return None

        variant = self.selector.pick(variants)
        volume, pitch = self.selector.derive(
            variant, request.volume_multiplier, request.pitch_multiplier
        )
        handle = self.pool.reserve()
        handle.start(
            request.sound_type,
            variant,
            volume,
            pitch,
            spatial=request.spatial,
            on_finished=request.on_finished,
        )
        self.last_failure = None
        return handle

    def play_sound(
        self: Self,
        sound_type: SoundKey,
        volume_multiplier: float = 1.0,
        pitch_multiplier: float = 1.0,
        on_finished: Optional[FinishedCallback] = None,
    ) -> Optional[PlaybackHandle]:
        return self.play(
            PlayRequest(sound_type, volume_multiplier, pitch_multiplier, None, on_finished)
        )

    def play_sound_at(
        self: Self,
        sound_type: SoundKey,
        position: Vector3,
        volume_multiplier: float = 1.0,
        pitch_multiplier: float = 1.0,
        on_finished: Optional[FinishedCallback] = None,
    ) -> Optional[PlaybackHandle]:
        return self.play(
            PlayRequest(
                sound_type,
                volume_multiplier,
                pitch_multiplier,
                FixedPosition(tuple(position)),
                on_finished,
            )
        )

    def play_sound_following(
        self: Self,
        sound_type: SoundKey,
        target: Positioned,
        volume_multiplier: float = 1.0,
        pitch_multiplier: float = 1.0,
        on_finished: Optional[FinishedCallback] = None,
    ) -> Optional[PlaybackHandle]:
        return self.play(
            PlayRequest(
                sound_type,
                volume_multiplier,
                pitch_multiplier,
                Following(target),
                on_finished,
            )
        )

    def stop(self: Self, handle: PlaybackHandle) -> None:
        """Stop ``handle`` immediately and return it to the pool."""
        handle.stop()

    def stop_all(self: Self) -> int:
        """Stop every busy handle; returns how many were stopped."""
        stopped = 0
        for handle in self.pool.busy_handles():
            # A completion callback may already have stopped it.
            if handle.state in (HandleState.PLAYING, HandleState.FINISHING):
                handle.stop()
                stopped += 1
        return stopped

    # --- Checks ---
    def can_play(self: Self, sound_type: SoundKey) -> bool:
        """True if ``play`` would currently succeed for ``sound_type``."""
        if is_none_sound(sound_type) or not self.catalog.variants_for(sound_type):
            return False
        return self.pool.idle_count > 0 or self.pool.can_grow

    def _check_playable(
        self: Self, sound_type: SoundKey
    ) -> Tuple[Optional[Type[SoundError]], Sequence[SoundVariant]]:
        if is_none_sound(sound_type):
            return InvalidSoundType, ()

        variants: List[SoundVariant] = self.catalog.variants_for(sound_type)
        if not variants:
            return UnknownSoundType, ()

        if self.pool.idle_count == 0:
            if not self.pool.can_grow:
                return PoolExhausted, ()
            self.pool.grow(1)
            if self._observer is not None:
                self._observer.pool_grown(self.pool.size)

        return None, variants

    def _report_failure(self: Self, failure: Type[SoundError], sound_type: SoundKey) -> None:
        if failure is InvalidSoundType:
            self._observer.invalid_sound_type(sound_type)
        elif failure is UnknownSoundType:
            self._observer.unknown_sound_type(sound_type)
        elif failure is PoolExhausted:
            self._observer.pool_exhausted(sound_type)
