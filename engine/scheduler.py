# engine/scheduler.py
"""Frame-driven cooperative task scheduler.

Tasks are plain generators.  A task suspends by yielding one of:

``None``
    resume on the next :meth:`CoroutineScheduler.tick`.
:class:`WaitForSeconds`
    resume on the first tick at which at least ``seconds`` of scheduler time
    have elapsed.

Everything runs on the caller's thread inside ``tick()``; state shared
between tasks only changes between suspension points, so no locking is
needed.  A newly started task runs synchronously up to its first ``yield``.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Generator, List, Optional, Self

import structlog

log = structlog.get_logger(__name__)

# Absorbs float accumulation error when comparing wake times.
TIME_EPSILON = 1e-9

Coroutine = Generator[Optional["WaitForSeconds"], None, None]


@dataclass(frozen=True)
class WaitForSeconds:
    """Suspend the yielding task for ``seconds`` of scheduler time."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError("WaitForSeconds requires a non-negative duration")


class Task:
    """Handle to a coroutine running on a :class:`CoroutineScheduler`."""

    _ids = itertools.count(1)

    def __init__(self: Self, coroutine: Coroutine, name: str | None = None):
        self.task_id: int = next(Task._ids)
        self.name: str = name or f"task-{self.task_id}"
        self._coroutine = coroutine
        self.wake_time: float | None = None
        self.done: bool = False
        self.cancelled: bool = False

    def cancel(self: Self) -> None:
        """Stop the task; the generator is closed and never resumed."""
        if self.done:
            return
        self.cancelled = True
        self.done = True
        self._coroutine.close()

    def __repr__(self: Self) -> str:
        state = "cancelled" if self.cancelled else "done" if self.done else "pending"
        return f"<Task {self.name} {state}>"


class CoroutineScheduler:
    """Runs generator tasks against a clock advanced by :meth:`tick`."""

    def __init__(self: Self, start_time: float = 0.0):
        self.time: float = start_time
        self.frame: int = 0
        self._tasks: List[Task] = []

    @property
    def pending(self: Self) -> int:
        return sum(1 for t in self._tasks if not t.done)

    def is_idle(self: Self) -> bool:
        return self.pending == 0

    def start(self: Self, coroutine: Coroutine, name: str | None = None) -> Task:
        """Register ``coroutine`` and run it up to its first suspension."""
        task = Task(coroutine, name)
        self._tasks.append(task)
        self._step(task)
        return task

    def tick(self: Self, dt: float) -> None:
        """Advance the clock by ``dt`` seconds and resume every due task.

        Tasks started while the tick is in progress are not resumed until the
        following tick.  An exception escaping a task ends that task and is
        re-raised to the caller.
        """
        if dt < 0:
            raise ValueError("dt must be non-negative")
        self.time += dt
        self.frame += 1
        for task in list(self._tasks):
            if task.done:
                continue
            if task.wake_time is not None and self.time + TIME_EPSILON < task.wake_time:
                continue
            self._step(task)
        self._tasks = [t for t in self._tasks if not t.done]

    def cancel_all(self: Self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    def _step(self: Self, task: Task) -> None:
        try:
            instruction = next(task._coroutine)
        except StopIteration:
            task.done = True
            return
        except Exception as e:
            task.done = True
            log.error("Task raised", task=task.name, error=str(e), exc_info=True)
            raise

        if instruction is None:
            task.wake_time = None
        elif isinstance(instruction, WaitForSeconds):
            task.wake_time = self.time + instruction.seconds
        else:
            task.cancel()
            raise TypeError(
                f"Task {task.name} yielded unsupported instruction {instruction!r}"
            )
