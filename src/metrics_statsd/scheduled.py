# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Periodic reporting of a metric registry.

:class:`ScheduledReporter` owns the reporting cadence: a daemon thread calls
:meth:`ScheduledReporter.report_now` every ``period`` seconds, and
``report_now`` hands a fresh, filtered :class:`MetricSnapshot` to the
subclass's :meth:`ScheduledReporter.report`. Cycles never overlap.

Example::

    reporter = StatsDReporter.for_registry(registry).build("localhost", 8125)
    reporter.start(10.0)
    ...
    reporter.stop()
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Self

from .errors import ReporterConfigError
from .logging import get_logger
from .registry import ALL_METRICS, MetricFilter, MetricRegistry, MetricSnapshot
from .units import TimeUnit

logger = get_logger(__name__)


class ScheduledReporter(ABC):
    """Base class for reporters driven by a fixed-rate background thread.

    Args:
        registry: The registry to sample.
        name: Reporter name, used for the thread name and log context.
        metric_filter: Only metrics accepted by this predicate are reported.
        rate_unit: Unit rates are expressed per (events per ``rate_unit``).
        duration_unit: Unit durations are expressed in.
    """

    def __init__(
        self,
        registry: MetricRegistry,
        name: str,
        *,
        metric_filter: MetricFilter = ALL_METRICS,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._name = name
        self._metric_filter = metric_filter
        self._rate_unit = rate_unit
        self._duration_unit = duration_unit
        self._rate_factor = rate_unit.to_seconds(1)
        self._duration_factor = 1.0 / duration_unit.nanos
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._period = 0.0
        self._log = logger.bind(reporter=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def rate_unit(self) -> TimeUnit:
        return self._rate_unit

    @property
    def duration_unit(self) -> TimeUnit:
        return self._duration_unit

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    @abstractmethod
    def report(self, snapshot: MetricSnapshot) -> None:
        """Report one cycle's worth of metrics."""

    def report_now(self) -> None:
        """Sample the registry and report it immediately.

        Blocks while another cycle is in flight, so at most one call to
        :meth:`report` runs at a time.
        """
        with self._cycle_lock:
            self.report(self._registry.snapshot(self._metric_filter))

    def start(self, period: float, *, initial_delay: float | None = None) -> None:
        """Report every ``period`` seconds on a daemon thread.

        The first report happens after ``initial_delay`` seconds, which
        defaults to ``period``. Calling ``start`` on a running reporter does
        nothing.

        Raises:
            ReporterConfigError: If ``period`` is not positive or
                ``initial_delay`` is negative.
        """
        if period <= 0:
            raise ReporterConfigError(f"Reporting period must be positive: {period}")
        if initial_delay is not None and initial_delay < 0:
            raise ReporterConfigError(
                f"Initial delay must not be negative: {initial_delay}"
            )
        if self._thread is not None:
            return

        self._period = period
        # Each thread watches its own event: a thread left behind by a timed
        # out stop() must not be revived by this start().
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(
                self._stop_event,
                period if initial_delay is None else initial_delay,
            ),
            name=self._name,
            daemon=True,
        )
        self._thread.start()
        self._log.debug(
            "Reporter started", event="reporter.started", context={"period": period}
        )

    def stop(self) -> None:
        """Stop the reporting thread and wait for an in-flight cycle."""
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout=max(self._period * 2, 1.0))
            self._log.debug("Reporter stopped", event="reporter.stopped")

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def convert_rate(self, rate: float) -> float:
        """Express a per-second ``rate`` per :attr:`rate_unit`."""
        return rate * self._rate_factor

    def convert_duration(self, duration_ns: float) -> float:
        """Express a nanosecond duration in :attr:`duration_unit`."""
        return duration_ns * self._duration_factor

    def _run(self, stop_event: threading.Event, initial_delay: float) -> None:
        delay = initial_delay
        while not stop_event.wait(timeout=delay):
            try:
                self.report_now()
            except Exception:
                self._log.exception(
                    "Exception thrown from reporter cycle",
                    event="reporter.cycle.failed",
                )
            delay = self._period


__all__ = ["ScheduledReporter"]
