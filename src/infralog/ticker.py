"""
Fixed-interval scheduler for the poll loop.
"""

import threading
import time
from typing import Callable

from .errors import ConfigError


class Ticker:
    """
    Runs a task every ``interval`` seconds until stopped.

    Invocations never overlap: a slow task delays the next one instead. Ticks
    missed while a task was running collapse into a single immediate run.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        if interval <= 0:
            raise ConfigError(f"polling interval must be positive, got {interval}")
        self.interval = interval
        self._clock = clock

    def start(self, stop_event: threading.Event, task: Callable[[], object]) -> None:
        """
        Block, invoking ``task`` on every tick until ``stop_event`` is set.

        The stop event is checked while waiting and before every invocation.
        A running task is never interrupted.
        """
        next_run = self._clock() + self.interval
        while True:
            delay = max(0.0, next_run - self._clock())
            if stop_event.wait(delay):
                return

            task()

            next_run += self.interval
            now = self._clock()
            if next_run < now:
                next_run = now
