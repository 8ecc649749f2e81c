"""Single-threaded periodic task scheduler.

Tasks run one at a time on a fixed cadence. A task never overlaps itself:
when a run outlasts its interval the missed ticks are skipped. A failing
task is logged and retried on its next tick without affecting other tasks.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import time
from typing import Callable, Sequence

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PeriodicTask:
    """A named action run every ``interval_seconds``.

    Attributes:
        name: Unique task name used in logs.
        interval_seconds: Cadence between scheduled starts.
        action: Callable run on each tick.
        first_in_seconds: Delay before the first run.
    """

    name: str
    interval_seconds: float
    action: Callable[[], object]
    first_in_seconds: float = 0.0


class PeriodicScheduler:
    """Run periodic tasks cooperatively on one thread."""

    def __init__(
        self,
        tasks: Sequence[PeriodicTask],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        names = [task.name for task in tasks]
        if len(set(names)) != len(names):
            raise ValueError(f"Periodic task names must be unique, got {names}.")
        for task in tasks:
            if task.interval_seconds <= 0:
                raise ValueError(
                    f"Task '{task.name}' interval must be positive, got {task.interval_seconds}."
                )
        self._tasks = tuple(tasks)
        self._clock = clock
        self._sleep = sleep
        started_at = clock()
        self._next_run_at = {task.name: started_at + task.first_in_seconds for task in tasks}

    def next_run_at(self, task_name: str) -> float:
        return self._next_run_at[task_name]

    def run_pending(self) -> list[str]:
        """Run every task that is due and return their names."""
        ran: list[str] = []
        for task in self._tasks:
            scheduled_at = self._next_run_at[task.name]
            if self._clock() < scheduled_at:
                continue
            self._run_task(task)
            self._reschedule(task, scheduled_at)
            ran.append(task.name)
        return ran

    def run_forever(self, max_ticks: int | None = None) -> None:
        """Loop over due tasks, sleeping until the next one is due.

        Args:
            max_ticks: Stop after this many loop iterations; run forever when None.
        """
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.run_pending()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            wait_seconds = min(self._next_run_at.values()) - self._clock()
            if wait_seconds > 0:
                self._sleep(wait_seconds)

    def _run_task(self, task: PeriodicTask) -> None:
        started_at = self._clock()
        try:
            task.action()
        except Exception as error:
            # Isolated per task; the next tick retries from scratch.
            _LOGGER.error(
                "task_failed",
                task=task.name,
                error_type=type(error).__name__,
                error=str(error),
            )
            return
        _LOGGER.debug(
            "task_completed",
            task=task.name,
            duration_seconds=round(self._clock() - started_at, 3),
        )

    def _reschedule(self, task: PeriodicTask, scheduled_at: float) -> None:
        finished_at = self._clock()
        # Ticks that fell strictly inside the run are dropped, never queued.
        elapsed_intervals = math.ceil((finished_at - scheduled_at) / task.interval_seconds)
        skipped_ticks = max(0, elapsed_intervals - 1)
        if skipped_ticks:
            _LOGGER.warning("task_ticks_skipped", task=task.name, skipped=skipped_ticks)
        self._next_run_at[task.name] = scheduled_at + task.interval_seconds * (skipped_ticks + 1)
