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

"""Named, thread-safe collection of metrics."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from ..clock import SYSTEM_CLOCK, Clock
from ..errors import DuplicateMetricError
from ._primitives import Counter, Gauge, Histogram, Meter, Metric, Timer
from ._snapshot import DEFAULT_RESERVOIR_SIZE
from ._types import CountingView, GaugeView, MeteredView, SamplingView, TimerView

type MetricFilter = Callable[[str, Metric], bool]
"""Predicate deciding whether a named metric takes part in a report."""


def _accept_all(name: str, metric: Metric) -> bool:
    return True


ALL_METRICS: Final[MetricFilter] = _accept_all
"""Filter that accepts every metric."""


def _empty[V]() -> Mapping[str, V]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class MetricSnapshot:
    """The metrics to report in one cycle, grouped by kind.

    Each mapping iterates in ascending name order. Snapshots are built fresh
    for every cycle and hold live metric objects, so statistics are read at
    report time.
    """

    gauges: Mapping[str, GaugeView] = field(default_factory=_empty)
    counters: Mapping[str, CountingView] = field(default_factory=_empty)
    histograms: Mapping[str, SamplingView] = field(default_factory=_empty)
    meters: Mapping[str, MeteredView] = field(default_factory=_empty)
    timers: Mapping[str, TimerView] = field(default_factory=_empty)


class MetricRegistry:
    """Registry of metrics keyed by dotted names.

    Example::

        registry = MetricRegistry()
        requests = registry.meter(MetricRegistry.name("http", "requests"))
        requests.mark()

        registry.gauge("jobs.queue.depth", lambda: len(queue))
    """

    def __init__(
        self,
        *,
        clock: Clock = SYSTEM_CLOCK,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
    ) -> None:
        super().__init__()
        self._clock = clock
        self._reservoir_size = reservoir_size
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.RLock()

    @staticmethod
    def name(*components: str | None) -> str:
        """Join name components with ``.``, skipping ``None`` and empty parts.

        Example::

            MetricRegistry.name("app", "db", "p99")  # "app.db.p99"
            MetricRegistry.name(None, "db", "p99")   # "db.p99"
        """
        return ".".join(part for part in components if part)

    def register[M: Metric](self, name: str, metric: M) -> M:
        """Register ``metric`` under ``name``.

        Raises:
            DuplicateMetricError: If ``name`` is already taken.
        """
        with self._lock:
            if name in self._metrics:
                raise DuplicateMetricError(f"A metric named {name} already exists")
            self._metrics[name] = metric
        return metric

    def remove(self, name: str) -> bool:
        """Remove the metric called ``name``; return whether one existed."""
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._metrics))

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._metrics

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def counter(self, name: str) -> Counter:
        return self._get_or_add(name, Counter, Counter)

    def histogram(self, name: str) -> Histogram:
        return self._get_or_add(
            name, Histogram, lambda: Histogram(self._reservoir_size)
        )

    def meter(self, name: str) -> Meter:
        return self._get_or_add(name, Meter, lambda: Meter(self._clock))

    def timer(self, name: str) -> Timer:
        return self._get_or_add(
            name, Timer, lambda: Timer(self._clock, self._reservoir_size)
        )

    def gauge(self, name: str, supplier: Callable[[], object]) -> Gauge:
        """Return the gauge called ``name``, registering ``supplier`` if new."""
        return self._get_or_add(name, Gauge, lambda: Gauge(supplier))

    def snapshot(self, metric_filter: MetricFilter | None = None) -> MetricSnapshot:
        """Group the metrics accepted by ``metric_filter`` by kind."""
        accept = metric_filter or ALL_METRICS
        with self._lock:
            items = sorted(self._metrics.items())

        gauges: dict[str, GaugeView] = {}
        counters: dict[str, CountingView] = {}
        histograms: dict[str, SamplingView] = {}
        meters: dict[str, MeteredView] = {}
        timers: dict[str, TimerView] = {}
        for name, metric in items:
            if not accept(name, metric):
                continue
            match metric:
                case Gauge():
                    gauges[name] = metric
                case Counter():
                    counters[name] = metric
                case Histogram():
                    histograms[name] = metric
                case Meter():
                    meters[name] = metric
                case Timer():
                    timers[name] = metric

        return MetricSnapshot(
            gauges=MappingProxyType(gauges),
            counters=MappingProxyType(counters),
            histograms=MappingProxyType(histograms),
            meters=MappingProxyType(meters),
            timers=MappingProxyType(timers),
        )

    def _get_or_add[M: Metric](
        self, name: str, kind: type[M], factory: Callable[[], M]
    ) -> M:
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                created = factory()
                self._metrics[name] = created
                return created
        if isinstance(existing, kind):
            return existing
        raise DuplicateMetricError(
            f"{name} is already registered as a {type(existing).__name__}"
        )


__all__ = [
    "ALL_METRICS",
    "MetricFilter",
    "MetricRegistry",
    "MetricSnapshot",
]
