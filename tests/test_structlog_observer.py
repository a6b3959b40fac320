from structlog.testing import capture_logs

from engine.scheduler import CoroutineScheduler
from sfx.backends import SimulatedSourceFactory
from sfx.buffers import AudioBuffer
from sfx.config import SoundManagerConfig
from sfx.errors import MissingBuffer, PoolExhausted
from sfx.manager import SoundManager
from sfx.observer import StructlogObserver
from sfx.types import GameSound, SoundVariant


def test_variant_skipped_is_logged_with_reason():
    observer = StructlogObserver()
    with capture_logs() as logs:
        observer.variant_skipped(SoundVariant(GameSound.CLICK, None), MissingBuffer)
    assert logs == [
        {
            "event": MissingBuffer.message,
            "log_level": "warning",
            "reason": "MissingBuffer",
            "sound_type": "click",
        }
    ]


def test_release_delayed_names_the_handle():
    observer = StructlogObserver()
    with capture_logs() as logs:
        observer.release_delayed("SoundPlayer3", 2)
    assert logs[0]["handle"] == "SoundPlayer3"
    assert logs[0]["extra_waits"] == 2
    assert logs[0]["log_level"] == "warning"


def test_manager_failures_reach_the_log():
    scheduler = CoroutineScheduler()
    manager = SoundManager(
        SimulatedSourceFactory(scheduler),
        scheduler,
        config=SoundManagerConfig(initial_pool_size=0, can_grow_pool=False),
        variant_source=lambda: [SoundVariant(GameSound.CLICK, AudioBuffer("c", 0.1))],
        known_sound_types=[GameSound.CLICK, GameSound.PICKUP],
        observer=StructlogObserver(),
    )
    with capture_logs() as logs:
        manager.initialize()
        manager.play_sound(GameSound.CLICK)
        manager.play_sound(GameSound.NONE)

    assert [entry.get("reason") for entry in logs] == [
        None,
        "PoolExhausted",
        "InvalidSoundType",
    ]
    assert logs[0]["sound_types"] == ["pickup"]
    assert logs[1]["event"] == PoolExhausted.message
    assert logs[1]["sound_type"] == "click"


def test_pool_growth_is_logged():
    scheduler = CoroutineScheduler()
    manager = SoundManager(
        SimulatedSourceFactory(scheduler),
        scheduler,
        config=SoundManagerConfig(initial_pool_size=0),
        variant_source=lambda: [SoundVariant(GameSound.CLICK, AudioBuffer("c", 0.1))],
        known_sound_types=[GameSound.CLICK],
        observer=StructlogObserver(),
    )
    manager.initialize()
    with capture_logs() as logs:
        manager.play_sound(GameSound.CLICK)
    assert len(logs) == 1
    assert logs[0]["pool_size"] == 1
