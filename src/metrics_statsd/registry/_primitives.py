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

"""Mutable, thread-safe metric primitives."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..clock import SYSTEM_CLOCK, Clock
from ..units import TimeUnit
from ._ewma import EWMA, TICK_INTERVAL_NANOS
from ._snapshot import DEFAULT_RESERVOIR_SIZE, SlidingWindowReservoir, Snapshot


class Gauge:
    """Point-in-time value read from a callable on demand.

    The supplier may return any object; reporters decide how (and whether)
    the value can be represented.

    Example::

        queue = []
        registry.gauge("jobs.queue.depth", lambda: len(queue))
    """

    def __init__(self, supplier: Callable[[], object]) -> None:
        super().__init__()
        self._supplier = supplier

    @property
    def value(self) -> object:
        return self._supplier()


class Counter:
    """Integer counter that can be incremented and decremented."""

    def __init__(self) -> None:
        super().__init__()
        self._count = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    @property
    def count(self) -> int:
        with self._lock:
            return self._count


class Histogram:
    """Distribution of recorded values over a sliding sample window.

    ``count`` is the total number of updates ever recorded, while
    :meth:`snapshot` covers only the most recent ``reservoir_size`` samples.
    """

    def __init__(self, reservoir_size: int = DEFAULT_RESERVOIR_SIZE) -> None:
        super().__init__()
        self._reservoir = SlidingWindowReservoir(reservoir_size)
        self._count = 0
        self._lock = threading.Lock()

    def update(self, value: float) -> None:
        with self._lock:
            self._count += 1
        self._reservoir.update(value)

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def snapshot(self) -> Snapshot:
        return self._reservoir.snapshot()


class Meter:
    """Event throughput: total count, mean rate and 1/5/15-minute EWMAs.

    Rates are in events per second. The moving averages are ticked lazily,
    whenever a mark or a rate read finds that one or more 5 second intervals
    have elapsed since the last tick.
    """

    def __init__(self, clock: Clock = SYSTEM_CLOCK) -> None:
        super().__init__()
        self._clock = clock
        self._m1 = EWMA.one_minute()
        self._m5 = EWMA.five_minute()
        self._m15 = EWMA.fifteen_minute()
        self._count = 0
        self._start_tick = clock.tick()
        self._last_tick = self._start_tick
        self._lock = threading.Lock()

    def mark(self, n: int = 1) -> None:
        self._tick_if_necessary()
        with self._lock:
            self._count += n
        self._m1.update(n)
        self._m5.update(n)
        self._m15.update(n)

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def one_minute_rate(self) -> float:
        self._tick_if_necessary()
        return self._m1.rate()

    @property
    def five_minute_rate(self) -> float:
        self._tick_if_necessary()
        return self._m5.rate()

    @property
    def fifteen_minute_rate(self) -> float:
        self._tick_if_necessary()
        return self._m15.rate()

    @property
    def mean_rate(self) -> float:
        with self._lock:
            count = self._count
        if count == 0:
            return 0.0
        elapsed = self._clock.tick() - self._start_tick
        if elapsed <= 0:
            return 0.0
        return count / elapsed * TimeUnit.SECONDS.nanos

    def _tick_if_necessary(self) -> None:
        now = self._clock.tick()
        with self._lock:
            age = now - self._last_tick
            if age <= TICK_INTERVAL_NANOS:
                return
            self._last_tick = now - age % TICK_INTERVAL_NANOS
        for _ in range(age // TICK_INTERVAL_NANOS):
            self._m1.tick()
            self._m5.tick()
            self._m15.tick()


class Timer:
    """A meter of timed events plus a histogram of their durations.

    Durations are recorded in nanoseconds; reporters convert them to their
    configured duration unit.

    Example::

        timer = registry.timer("db.query")
        with timer.time():
            run_query()
    """

    def __init__(
        self,
        clock: Clock = SYSTEM_CLOCK,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
    ) -> None:
        super().__init__()
        self._clock = clock
        self._meter = Meter(clock)
        self._histogram = Histogram(reservoir_size)

    def update(self, duration_ns: int) -> None:
        """Record one event lasting ``duration_ns`` nanoseconds.

        Negative durations are ignored.
        """
        if duration_ns < 0:
            return
        self._histogram.update(duration_ns)
        self._meter.mark()

    @contextmanager
    def time(self) -> Iterator[None]:
        """Record the wall time spent inside the ``with`` block."""
        start = self._clock.tick()
        try:
            yield
        finally:
            self.update(self._clock.tick() - start)

    @property
    def count(self) -> int:
        return self._histogram.count

    def snapshot(self) -> Snapshot:
        return self._histogram.snapshot()

    @property
    def one_minute_rate(self) -> float:
        return self._meter.one_minute_rate

    @property
    def five_minute_rate(self) -> float:
        return self._meter.five_minute_rate

    @property
    def fifteen_minute_rate(self) -> float:
        return self._meter.fifteen_minute_rate

    @property
    def mean_rate(self) -> float:
        return self._meter.mean_rate


type Metric = Gauge | Counter | Histogram | Meter | Timer
"""The closed set of metric kinds a registry holds."""


__all__ = [
    "Counter",
    "Gauge",
    "Histogram",
    "Meter",
    "Metric",
    "Timer",
]
