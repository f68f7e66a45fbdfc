from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Any, Iterable

import structlog

from pinger.checks.http_check import TargetChecker
from pinger.checks.results import CheckOutcome, ErrorKind
from pinger.formatting import round_ms
from pinger.sink import ResultSink


class OverlapPolicy(str, Enum):
    ALLOW = "allow"
    SKIP = "skip"


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    STOPPED = "stopped"


class CycleCoordinator:
    """Checks every target once per cycle and forwards outcomes as they complete.

    ``max_workers=0`` gives every target its own worker.
    """

    def __init__(
        self,
        targets: Iterable[str],
        checker: TargetChecker,
        sink: ResultSink,
        max_workers: int = 0,
        logger: Any = None,
    ) -> None:
        self.targets = tuple(targets)
        self.checker = checker
        self.sink = sink
        self.max_workers = max_workers
        self._logger = logger or structlog.get_logger(__name__)

    def describe(self) -> dict[str, Any]:
        return {
            "url_count": len(self.targets),
            "timeout_s": self.checker.config.timeout_s,
            "max_retries": self.checker.max_retries,
            "max_concurrency": self.max_workers or len(self.targets),
        }

    def _collect(self, future: Future, url: str) -> CheckOutcome:
        try:
            return future.result()
        except Exception as exc:
            # A broken check must not take the rest of the cycle with it.
            self._logger.exception("Check crashed", url=url)
            return CheckOutcome.from_error(
                url, f"{exc.__class__.__name__}: {exc}", ErrorKind.INTERNAL, attempts=0
            )

    def _forward(self, outcome: CheckOutcome) -> None:
        try:
            self.sink.emit(outcome)
        except Exception:
            self._logger.exception("Result sink failed", url=outcome.url)

    def run_cycle(self) -> list[CheckOutcome]:
        if not self.targets:
            return []

        workers = self.max_workers or len(self.targets)
        outcomes: list[CheckOutcome] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pinger-check") as executor:
            futures = {executor.submit(self.checker.check, url): url for url in self.targets}
            for future in as_completed(futures):
                outcome = self._collect(future, futures[future])
                self._forward(outcome)
                outcomes.append(outcome)
        return outcomes


class Scheduler:
    """Runs a cycle immediately, then one per ``interval_s`` until stopped.

    Cycles run on their own threads so a slow cycle never delays the next
    tick. ``overlap_policy`` and ``max_concurrent_cycles`` decide whether a
    tick may start a cycle while earlier ones are still running; a refused
    tick is skipped, not queued.

    Stopping is observed only while waiting for the next tick. In-flight cycles
    are then given ``drain_timeout_s`` seconds to finish (``None`` waits for
    them, ``0`` abandons them to process exit).
    """

    def __init__(
        self,
        coordinator: CycleCoordinator,
        interval_s: float,
        stop_event: threading.Event | None = None,
        *,
        overlap_policy: OverlapPolicy = OverlapPolicy.ALLOW,
        max_concurrent_cycles: int = 0,
        drain_timeout_s: float | None = 30.0,
        logger: Any = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.coordinator = coordinator
        self.interval_s = interval_s
        self.stop_event = stop_event or threading.Event()
        self.overlap_policy = OverlapPolicy(overlap_policy)
        self.max_concurrent_cycles = max_concurrent_cycles
        self.drain_timeout_s = drain_timeout_s
        self.state = SchedulerState.IDLE
        self._logger = logger or structlog.get_logger(__name__)
        self._cycles: list[threading.Thread] = []
        self._cycle_count = 0
        self._lock = threading.Lock()

    @property
    def active_cycles(self) -> int:
        with self._lock:
            return sum(1 for t in self._cycles if t.is_alive())

    @property
    def cycles_started(self) -> int:
        return self._cycle_count

    def stop(self) -> None:
        self.stop_event.set()

    def _refuse_reason(self, active: int) -> str | None:
        if self.overlap_policy is OverlapPolicy.SKIP and active:
            return "previous cycle still running"
        if self.max_concurrent_cycles and active >= self.max_concurrent_cycles:
            return "concurrent cycle limit reached"
        return None

    def _run_cycle(self, number: int) -> None:
        start = time.perf_counter()
        try:
            outcomes = self.coordinator.run_cycle()
        except Exception:
            self._logger.exception("Cycle failed", cycle=number)
            return
        self._logger.debug(
            "Cycle completed",
            cycle=number,
            outcomes=len(outcomes),
            failed=sum(1 for o in outcomes if not o.succeeded),
            duration_ms=round_ms((time.perf_counter() - start) * 1000),
        )

    def _launch_cycle(self) -> bool:
        with self._lock:
            self._cycles = [t for t in self._cycles if t.is_alive()]
            active = len(self._cycles)
            reason = self._refuse_reason(active)
            if reason is None:
                self._cycle_count += 1
                number = self._cycle_count
                thread = threading.Thread(
                    target=self._run_cycle,
                    args=(number,),
                    name=f"pinger-cycle-{number}",
                    daemon=True,
                )
                self._cycles.append(thread)
                thread.start()

        if reason is not None:
            self._logger.warning("Skipping cycle", reason=reason, active_cycles=active)
            return False
        return True

    def _drain(self) -> int:
        with self._lock:
            pending = [t for t in self._cycles if t.is_alive()]
        if self.drain_timeout_s is None:
            for thread in pending:
                thread.join()
            return 0

        deadline = time.monotonic() + self.drain_timeout_s
        for thread in pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            thread.join(remaining)
        return sum(1 for t in pending if t.is_alive())

    def run(self) -> None:
        self.state = SchedulerState.RUNNING
        self._logger.info(
            "Pinger started",
            interval_s=self.interval_s,
            overlap_policy=self.overlap_policy.value,
            **self.coordinator.describe(),
        )

        self._launch_cycle()
        next_tick = time.monotonic() + self.interval_s

        while True:
            self.state = SchedulerState.WAITING
            if self.stop_event.wait(max(0.0, next_tick - time.monotonic())):
                break

            self.state = SchedulerState.RUNNING
            now = time.monotonic()
            next_tick += self.interval_s
            if next_tick <= now:
                # Missed ticks are dropped rather than replayed back to back.
                next_tick = now + self.interval_s
            self._launch_cycle()

        abandoned = self._drain()
        self.state = SchedulerState.STOPPED
        self._logger.info("Pinger stopped", abandoned_cycles=abandoned)
