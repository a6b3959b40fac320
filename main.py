# main.py
import argparse
import dataclasses
import logging
import sys
from pathlib import Path

import structlog

from engine.main_loop import FrameLoop
from engine.scheduler import CoroutineScheduler
from sfx.backends import SimulatedSourceFactory
from sfx.config import load_sound_config
from sfx.manager import SoundManager
from sfx.observer import StructlogObserver
from sfx.types import GameSound
from utils.logging_utils import setup_logging

# --- Paths relative to this script's location ---
SCRIPT_DIR = Path(__file__).parent.resolve()
CONFIG_DIR = SCRIPT_DIR / "config"
SOUNDS_CONFIG_FILE = CONFIG_DIR / "sounds.yaml"
# --- End Paths ---

# --- Default Configuration ---
DEFAULT_FPS = 60.0
DEFAULT_BURST_SIZE = 25
DEFAULT_TIMEOUT = 10.0

log = structlog.get_logger()


class WalkingPlayer:
    """Walks 0.1 units along x per frame; its footsteps follow it."""

    def __init__(self, scheduler: CoroutineScheduler) -> None:
        self._scheduler = scheduler

    @property
    def position(self) -> tuple[float, float, float]:
        return (self._scheduler.frame * 0.1, 0.0, 0.0)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Play a burst of pooled sound effects on a headless backend."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=SOUNDS_CONFIG_FILE,
        help="Sound configuration YAML file.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for variant/pitch/volume choices (default: audio.rng_seed).",
    )
    parser.add_argument(
        "--burst",
        type=int,
        default=DEFAULT_BURST_SIZE,
        help="Number of explosions requested in the same frame.",
    )
    parser.add_argument(
        "--overrun",
        type=float,
        default=0.0,
        help="Seconds each simulated source keeps playing past its expected end.",
    )
    parser.add_argument("--fps", type=float, default=DEFAULT_FPS, help="Frame rate.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Give up if the pool has not drained after this many seconds.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs as JSON lines."
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Plays a burst of effects on a headless pool and reports the outcome."""
    args = parse_args(argv)
    log_level = (
        logging.DEBUG
        if args.verbose
        else getattr(logging, args.log_level.upper(), logging.INFO)
    )
    setup_logging(log_level, json_output=args.json_logs)
    log.info("Sound demo starting...", config=str(args.config))

    try:
        config, variant_source = load_sound_config(args.config)
        if args.seed is not None:
            config = dataclasses.replace(config, rng_seed=args.seed)
    except Exception as e:
        log.critical("Could not load sound configuration", error=str(e), exc_info=True)
        return 1

    scheduler = CoroutineScheduler()
    manager = SoundManager(
        SimulatedSourceFactory(scheduler, overrun=args.overrun),
        scheduler,
        config=config,
        variant_source=variant_source,
        observer=StructlogObserver(),
    )
    manager.initialize()
    log.info(
        "SoundManager initialized",
        sound_types=len(manager.catalog),
        pool_size=manager.pool.size,
        seed=manager.rng.initial_seed,
    )

    finished = []
    player = WalkingPlayer(scheduler)
    for i in range(args.burst):
        manager.play_sound_at(
            GameSound.EXPLOSION, (float(i), 0.0, 0.0), on_finished=finished.append
        )
    manager.play_sound_following(
        GameSound.FOOTSTEP, player, on_finished=finished.append
    )
    manager.play_sound(GameSound.NONE)

    loop = FrameLoop(scheduler, fps=args.fps)
    completed = loop.run_until(
        lambda: manager.pool.busy_count == 0, timeout=args.timeout
    )

    log.info(
        "Sound demo finished",
        completed=completed,
        sounds_finished=len(finished),
        pool_size=manager.pool.size,
        peak_busy=manager.pool.peak_busy,
        frames=loop.frames,
    )
    return 0 if completed else 1


if __name__ == "__main__":
    sys.exit(main())
