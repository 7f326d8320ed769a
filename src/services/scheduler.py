"""Jittered polling loop driving the watcher pipelines."""

from __future__ import annotations

import random
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from src.services.protocols import MonitorProtocol

logger = structlog.get_logger(__name__)


class PollScheduler:
    """Runs one monitor's cycles back to back with a random pause between them.

    The pause is re-rolled every cycle. Setting ``stop_event`` interrupts the
    pause; the monitor is always shut down (state flushed) when ``run``
    returns.
    """

    def __init__(
        self,
        monitor: MonitorProtocol,
        min_interval: float,
        max_interval: float,
        stop_event: threading.Event | None = None,
        rng: random.Random | None = None,
        max_cycles: int | None = None,
    ) -> None:
        if min_interval <= 0 or max_interval < min_interval:
            msg = "Intervals must satisfy 0 < min_interval <= max_interval"
            raise ValueError(msg)
        self.monitor = monitor
        self.min_interval = min_interval
        self.max_interval = max_interval
        self.stop_event = stop_event or threading.Event()
        self.rng = rng or random.Random()
        self.max_cycles = max_cycles
        self.cycles = 0

    def next_interval(self) -> float:
        """Seconds to wait before the next cycle."""
        return self.rng.uniform(self.min_interval, self.max_interval)

    def _run_cycle(self) -> None:
        try:
            events = self.monitor.run_cycle()
        except Exception as exc:
            logger.error("cycle_failed", monitor=self.monitor.name, error=str(exc))
            return
        logger.info("cycle_completed", monitor=self.monitor.name, events=len(events))

    def run(self) -> int:
        """Poll until stopped. Returns the number of cycles run."""
        logger.info(
            "monitor_started",
            monitor=self.monitor.name,
            min_interval=self.min_interval,
            max_interval=self.max_interval,
        )
        try:
            while not self.stop_event.is_set():
                self._run_cycle()
                self.cycles += 1
                if self.max_cycles is not None and self.cycles >= self.max_cycles:
                    break
                if self.stop_event.wait(self.next_interval()):
                    break
        finally:
            logger.info("monitor_stopping", monitor=self.monitor.name, cycles=self.cycles)
            self.monitor.shutdown()
        return self.cycles

    def stop(self) -> None:
        self.stop_event.set()


def run_schedulers(schedulers: list[PollScheduler]) -> dict[str, int]:
    """Run schedulers concurrently, one thread each, until all have stopped.

    Returns cycles run per monitor name.
    """
    results: dict[str, int] = {}
    if not schedulers:
        return results

    with ThreadPoolExecutor(
        max_workers=len(schedulers),
        thread_name_prefix="monitor",
    ) as executor:
        futures = {executor.submit(scheduler.run): scheduler for scheduler in schedulers}
        for future in as_completed(futures):
            name = futures[future].monitor.name
            try:
                results[name] = future.result()
            except Exception as exc:
                logger.error("monitor_crashed", monitor=name, error=str(exc))
                results[name] = futures[future].cycles
    return results
