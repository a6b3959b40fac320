"""Tests for SoundManager, the playback entry point."""

import pytest

from engine.scheduler import CoroutineScheduler
from sfx.backends import SimulatedSourceFactory
from sfx.buffers import AudioBuffer
from sfx.config import SoundManagerConfig
from sfx.errors import InvalidSoundType, InvariantViolation, PoolExhausted, UnknownSoundType
from sfx.handle import HandleState
from sfx.manager import SoundManager
from sfx.observer import RecordingObserver
from sfx.types import GameSound, PlayRequest, SoundVariant

FAILURE_EVENTS = ("invalid_sound_type", "unknown_sound_type", "pool_exhausted")


def default_variants():
    return [
        SoundVariant(GameSound.EXPLOSION, AudioBuffer("boom1", 0.2), 0.8, 1.0, 0.9, 1.1),
        SoundVariant(GameSound.EXPLOSION, AudioBuffer("boom2", 0.3), 0.9, 1.0, 1.0, 1.0),
        SoundVariant(GameSound.EXPLOSION, AudioBuffer("boom3", 0.25), 0.7, 1.0, 0.8, 1.2),
        SoundVariant(GameSound.CLICK, AudioBuffer("click", 0.1), 0.5, 0.5),
    ]


def make_manager(
    variants=None,
    initial_pool_size=5,
    can_grow=True,
    observer=None,
    initialize=True,
    known_sound_types=(GameSound.EXPLOSION, GameSound.CLICK),
):
    if variants is None:
        variants = default_variants()
    scheduler = CoroutineScheduler()
    factory = SimulatedSourceFactory(scheduler)
    config = SoundManagerConfig(
        initial_pool_size=initial_pool_size, can_grow_pool=can_grow, rng_seed=1234
    )
    manager = SoundManager(
        factory,
        scheduler,
        config=config,
        variant_source=lambda: variants,
        known_sound_types=known_sound_types,
        observer=observer,
    )
    if initialize:
        manager.initialize()
    return manager, scheduler, factory


def drain(scheduler, manager, dt=0.125, limit=1000):
    for _ in range(limit):
        if manager.pool.busy_count == 0:
            return
        scheduler.tick(dt)
    raise AssertionError("pool never drained")


class TestPlayOutcome:
    def test_handle_returned_iff_no_failure(self):
        observer = RecordingObserver()
        manager, _, _ = make_manager(initial_pool_size=1, can_grow=False, observer=observer)

        cases = [
            (GameSound.EXPLOSION, None),
            (GameSound.NONE, InvalidSoundType),
            (None, InvalidSoundType),
            ("", InvalidSoundType),
            (GameSound.FOOTSTEP, UnknownSoundType),
            ("laser", UnknownSoundType),
            (GameSound.CLICK, PoolExhausted),
        ]
        for sound_type, expected_failure in cases:
            observer.clear()
            handle = manager.play_sound(sound_type)
            failures = [name for name in observer.names() if name in FAILURE_EVENTS]
            assert manager.last_failure is expected_failure
            assert (handle is None) == bool(failures)
            if handle is not None:
                assert handle.state is HandleState.PLAYING
                assert handle.sound_type is sound_type

    def test_failure_events_name_the_requested_key(self):
        observer = RecordingObserver()
        manager, _, _ = make_manager(observer=observer)
        observer.clear()
        manager.play_sound(GameSound.NONE)
        manager.play_sound("laser")
        assert observer.events == [
            ("invalid_sound_type", GameSound.NONE),
            ("unknown_sound_type", "laser"),
        ]

    def test_success_clears_last_failure(self):
        manager, _, _ = make_manager()
        manager.play_sound("laser")
        assert manager.last_failure is UnknownSoundType
        assert manager.play_sound(GameSound.CLICK) is not None
        assert manager.last_failure is None

    def test_derived_parameters_respect_multipliers(self):
        manager, _, _ = make_manager()
        handle = manager.play(
            PlayRequest(GameSound.CLICK, volume_multiplier=0.5, pitch_multiplier=2.0)
        )
        assert handle.volume == pytest.approx(0.25)
        assert handle.pitch == pytest.approx(2.0)
        assert handle.source.volume == pytest.approx(0.25)
        assert handle.expected_duration == pytest.approx(0.05)

    def test_can_play(self):
        manager, _, _ = make_manager(initial_pool_size=1, can_grow=False)
        assert manager.can_play(GameSound.CLICK)
        assert not manager.can_play(GameSound.NONE)
        assert not manager.can_play(GameSound.FOOTSTEP)
        manager.play_sound(GameSound.CLICK)
        assert not manager.can_play(GameSound.CLICK)


class TestPoolGrowth:
    def test_empty_pool_without_growth_is_exhausted(self):
        observer = RecordingObserver()
        manager, _, _ = make_manager(initial_pool_size=0, can_grow=False, observer=observer)
        assert manager.play_sound(GameSound.EXPLOSION) is None
        assert manager.last_failure is PoolExhausted
        assert observer.count("pool_exhausted") == 1
        assert manager.pool.size == 0

    def test_empty_pool_with_growth_grows_then_reserves(self):
        observer = RecordingObserver()
        manager, _, _ = make_manager(initial_pool_size=0, can_grow=True, observer=observer)
        handle = manager.play_sound(GameSound.EXPLOSION)
        assert handle is not None
        assert handle.name == "SoundPlayer1"
        assert manager.pool.size == 1
        assert ("pool_grown", 1) in observer.events

    def test_growth_only_when_no_handle_is_idle(self):
        manager, _, _ = make_manager(initial_pool_size=2)
        for _ in range(5):
            manager.play_sound(GameSound.CLICK)
        assert manager.pool.size == 5
        assert manager.pool.busy_count == 5

    def test_capacity_hint(self):
        growable, _, _ = make_manager(initial_pool_size=10, can_grow=True)
        fixed, _, _ = make_manager(initial_pool_size=10, can_grow=False)
        assert growable.pool.capacity_hint == 20
        assert fixed.pool.capacity_hint == 10


class TestInitialization:
    def test_play_before_initialize_initializes_lazily(self):
        observer = RecordingObserver()
        manager, _, _ = make_manager(observer=observer, initialize=False)
        assert not manager.initialized
        handle = manager.play_sound(GameSound.CLICK)
        assert handle is not None
        assert manager.initialized
        assert observer.names()[0] == "played_before_initialized"
        assert manager.pool.size == 5

    def test_initialize_is_idempotent(self):
        manager, _, factory = make_manager()
        manager.initialize()
        assert manager.pool.size == 5
        assert len(factory.created) == 5

    def test_unassigned_sound_types_reported(self):
        observer = RecordingObserver()
        make_manager(
            observer=observer,
            known_sound_types=(GameSound.NONE, GameSound.EXPLOSION, GameSound.PICKUP),
        )
        assert ("unassigned_sound_types", [GameSound.PICKUP]) in observer.events

    def test_unassigned_check_can_be_disabled(self):
        observer = RecordingObserver()
        scheduler = CoroutineScheduler()
        manager = SoundManager(
            SimulatedSourceFactory(scheduler),
            scheduler,
            config=SoundManagerConfig(check_unassigned_sounds=False),
            variant_source=default_variants,
            observer=observer,
        )
        manager.initialize()
        assert observer.count("unassigned_sound_types") == 0

    def test_empty_catalog_still_constructs(self):
        observer = RecordingObserver()
        manager, _, _ = make_manager(variants=[], observer=observer)
        assert "empty_catalog" in observer.names()
        assert manager.play_sound(GameSound.EXPLOSION) is None
        assert manager.last_failure is UnknownSoundType

    def test_works_without_observer(self):
        manager, scheduler, _ = make_manager(
            variants=default_variants() + [SoundVariant(GameSound.PICKUP, None)],
            initial_pool_size=0,
            can_grow=False,
            initialize=False,
        )
        assert manager.play_sound(GameSound.CLICK) is None
        assert manager.last_failure is PoolExhausted
        assert manager.play_sound(GameSound.NONE) is None
        drain(scheduler, manager)


class TestRelease:
    def test_callback_fires_once_per_successful_play(self):
        manager, scheduler, _ = make_manager()
        finished = []
        handles = [
            manager.play_sound(GameSound.EXPLOSION, on_finished=finished.append)
            for _ in range(3)
        ]
        assert all(h is not None for h in handles)
        drain(scheduler, manager)
        for _ in range(20):
            scheduler.tick(0.125)
        assert finished == [GameSound.EXPLOSION] * 3
        assert manager.pool.idle_count == manager.pool.size

    def test_failed_play_never_calls_back(self):
        manager, scheduler, _ = make_manager()
        finished = []
        manager.play_sound("laser", on_finished=finished.append)
        for _ in range(20):
            scheduler.tick(0.125)
        assert finished == []

    def test_thousand_explosions_on_a_fixed_pool(self):
        manager, scheduler, factory = make_manager(initial_pool_size=5, can_grow=False)
        finished = []
        played = 0
        for i in range(1000):
            if manager.play_sound(GameSound.EXPLOSION, on_finished=finished.append):
                played += 1
            if i % 10 == 9:
                scheduler.tick(0.125)
        drain(scheduler, manager)

        assert manager.pool.size == 5
        assert manager.pool.peak_busy == 5
        assert played > 5
        assert len(finished) == played
        assert sum(source.overlaps for source in factory.created) == 0
        assert sum(source.plays for source in factory.created) == played
        assert sorted(h.name for h in manager.pool.handles) == [
            f"SoundPlayer{i}" for i in range(1, 6)
        ]

    def test_callback_may_play_again_on_the_released_handle(self):
        manager, scheduler, _ = make_manager(initial_pool_size=1, can_grow=False)
        replays = []

        def replay(sound_type):
            if len(replays) < 2:
                replays.append(manager.play_sound(GameSound.CLICK, on_finished=replay))

        first = manager.play_sound(GameSound.CLICK, on_finished=replay)
        drain(scheduler, manager)
        assert replays == [first, first]
        assert first.plays == 3
        assert first.state is HandleState.IDLE

    def test_callback_exception_leaves_pool_consistent(self):
        manager, scheduler, _ = make_manager(initial_pool_size=1, can_grow=False)

        def explode(sound_type):
            raise RuntimeError("callback failed")

        handle = manager.play_sound(GameSound.CLICK, on_finished=explode)
        with pytest.raises(RuntimeError):
            for _ in range(10):
                scheduler.tick(0.125)
        assert handle.state is HandleState.IDLE
        assert manager.pool.idle_count == 1
        assert manager.play_sound(GameSound.CLICK) is handle


class TestSpatialPlayback:
    def test_play_sound_at_sets_and_restores_position(self):
        manager, scheduler, _ = make_manager()
        handle = manager.play_sound_at(GameSound.CLICK, (5.0, 6.0, 7.0))
        assert handle.position == (5.0, 6.0, 7.0)
        drain(scheduler, manager)
        assert handle.position == (0.0, 0.0, 0.0)

    def test_play_sound_following_tracks_target(self):
        class Target:
            position = (0.0, 0.0, 0.0)

        target = Target()
        manager, scheduler, _ = make_manager()
        handle = manager.play_sound_following(GameSound.EXPLOSION, target)
        target.position = (2.0, 0.0, 1.0)
        scheduler.tick(0.0625)
        assert handle.position == (2.0, 0.0, 1.0)
        drain(scheduler, manager)
        assert handle.position == (0.0, 0.0, 0.0)


class TestStopping:
    def test_stop_releases_and_calls_back(self):
        manager, scheduler, _ = make_manager()
        finished = []
        handle = manager.play_sound(GameSound.EXPLOSION, on_finished=finished.append)
        manager.stop(handle)
        assert finished == [GameSound.EXPLOSION]
        assert handle.state is HandleState.IDLE
        for _ in range(10):
            scheduler.tick(0.125)
        assert finished == [GameSound.EXPLOSION]

    def test_stop_idle_handle_raises(self):
        manager, _, _ = make_manager()
        with pytest.raises(InvariantViolation):
            manager.stop(manager.pool.handles[0])

    def test_stop_all(self):
        manager, scheduler, _ = make_manager()
        finished = []
        for _ in range(3):
            manager.play_sound(GameSound.CLICK, on_finished=finished.append)
        assert manager.stop_all() == 3
        assert len(finished) == 3
        assert manager.pool.busy_count == 0
        assert scheduler.is_idle()
        assert manager.stop_all() == 0

    def test_stop_all_counts_only_handles_it_stopped(self):
        manager, _, _ = make_manager()
        first = manager.play_sound(GameSound.CLICK)
        manager.play_sound(GameSound.CLICK)

        def stop_first(sound_type):
            if first.is_busy:
                first.stop()

        last = manager.play_sound(GameSound.CLICK, on_finished=stop_first)
        assert manager.pool.busy_handles()[0] is last
        assert manager.stop_all() == 2
        assert manager.pool.busy_count == 0


class TestOrigin:
    def test_config_origin_is_the_rest_position(self):
        scheduler = CoroutineScheduler()
        manager = SoundManager(
            SimulatedSourceFactory(scheduler),
            scheduler,
            config=SoundManagerConfig(initial_pool_size=2, origin=(1.0, 2.0, 3.0)),
            variant_source=default_variants,
        )
        manager.initialize()
        assert all(h.position == (1.0, 2.0, 3.0) for h in manager.pool.handles)

        handle = manager.play_sound_at(GameSound.CLICK, (9.0, 9.0, 9.0))
        manager.stop(handle)
        assert handle.position == (1.0, 2.0, 3.0)

    def test_capacity_hint_follows_initial_pool_size_before_initialize(self):
        manager, _, _ = make_manager(initial_pool_size=7, initialize=False)
        assert manager.pool.size == 0
        assert manager.pool.capacity_hint == 14


class TestRebuild:
    def test_rebuild_picks_up_new_variants(self):
        variants = default_variants()
        manager, _, _ = make_manager(variants=variants)
        assert manager.play_sound(GameSound.PICKUP) is None

        variants.append(SoundVariant(GameSound.PICKUP, AudioBuffer("coin", 0.2)))
        manager.rebuild()
        assert manager.play_sound(GameSound.PICKUP) is not None

    def test_rebuild_is_idempotent(self):
        manager, _, _ = make_manager()
        before = manager.catalog.counts()
        manager.rebuild()
        manager.rebuild()
        assert manager.catalog.counts() == before
        assert before == {GameSound.EXPLOSION: 3, GameSound.CLICK: 1}
