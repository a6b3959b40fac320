# engine/main_loop.py
import time
from typing import Callable, Self

import structlog

from engine.scheduler import CoroutineScheduler

log = structlog.get_logger()


class FrameLoop:
    """
    Drives a CoroutineScheduler from a real clock, one tick per frame.

    The clock and sleep functions are injectable so the loop can be run
    against a fake clock in tests.
    """

    def __init__(
        self: Self,
        scheduler: CoroutineScheduler,
        fps: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.scheduler = scheduler
        self.frame_time: float = 1.0 / fps
        self._clock = clock
        self._sleep = sleep
        self.frames: int = 0
        log.debug("FrameLoop initialized", fps=fps)

    def run_until(
        self: Self, predicate: Callable[[], bool], timeout: float | None = None
    ) -> bool:
        """
        Ticks the scheduler until ``predicate()`` is true.
        Returns False if ``timeout`` seconds of wall time passed first.
        """
        started = last = self._clock()
        while not predicate():
            now = self._clock()
            if timeout is not None and now - started >= timeout:
                log.warning(
                    "FrameLoop timed out", timeout=timeout, frames=self.frames
                )
                return False
            self.scheduler.tick(now - last)
            self.frames += 1
            last = now
            remaining = self.frame_time - (self._clock() - now)
            if remaining > 0:
                self._sleep(remaining)
        return True

    def run_for(self: Self, seconds: float) -> None:
        """Ticks the scheduler for ``seconds`` of wall time."""
        deadline = self._clock() + seconds
        self.run_until(lambda: self._clock() >= deadline)
