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

"""Reporter publishing registry metrics to a StatsD server.

Every cycle sends one gauge line per reported value:

- gauges: ``<name>``
- counters: ``<name>``
- histograms: ``<name>.count`` plus the distribution statistics
- meters: ``<name>.count/.m1_rate/.m5_rate/.m15_rate/.mean_rate``
- timers: the distribution statistics (in the duration unit) plus the meter
  lines

Distribution statistics (``max``, ``mean``, ``min``, ``stddev``, ``p50``,
``p75``, ``p95``, ``p98``, ``p99``, ``p999``) are skipped for histograms and
timers whose count has not moved since the previous cycle, unless disabled
through the builder. Counts and rates are always sent, since backends need
an uninterrupted series of them to aggregate correctly.

Example::

    reporter = (
        StatsDReporter.for_registry(registry)
        .prefixed_with("checkout")
        .with_tags("env:prod", "region:eu")
        .convert_durations_to(TimeUnit.MILLISECONDS)
        .build("statsd.internal", 8125)
    )
    reporter.start(10.0)
"""

from __future__ import annotations

import numbers
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from operator import attrgetter
from typing import Final, Self, TypedDict, Unpack

from .logging import get_logger
from .registry import (
    ALL_METRICS,
    CountingView,
    GaugeView,
    MeteredView,
    MetricFilter,
    MetricRegistry,
    MetricSnapshot,
    SamplingView,
    Snapshot,
    TimerView,
)
from .scheduled import ScheduledReporter
from .statsd import DEFAULT_PORT, Sender, StatsD
from .units import TimeUnit

logger = get_logger(__name__)

_DISTRIBUTION_STATS: Final[tuple[tuple[str, Callable[[Snapshot], float]], ...]] = (
    ("max", attrgetter("max")),
    ("mean", attrgetter("mean")),
    ("min", attrgetter("min")),
    ("stddev", attrgetter("stddev")),
    ("p50", attrgetter("median")),
    ("p75", attrgetter("p75")),
    ("p95", attrgetter("p95")),
    ("p98", attrgetter("p98")),
    ("p99", attrgetter("p99")),
    ("p999", attrgetter("p999")),
)


def format_value(value: object) -> str | None:
    """Render a metric value for the wire, or ``None`` if it has no form.

    - ``bool``: ``"1"`` or ``"0"``
    - integers of any size: base-10 digits
    - ``Decimal`` and other real numbers (``float`` included): two decimal
      places with a ``.`` separator
    - anything else: ``None``

    Never raises.
    """
    match value:
        case bool():
            return "1" if value else "0"
        case numbers.Integral():
            return _format_integer(int(value))
        case Decimal():
            # Exact, rounded half-even: Decimal("0.125") gives "0.12".
            return f"{value:.2f}"
        case numbers.Real():
            return f"{float(value):.2f}"
        case _:
            return None


def _format_integer(n: int) -> str:
    try:
        return str(n)
    except ValueError:
        # longer than sys.get_int_max_str_digits()
        return str(Decimal(n))


class _ConfigChanges(TypedDict, total=False):
    prefix: str | None
    tags: tuple[str, ...]
    rate_unit: TimeUnit
    duration_unit: TimeUnit
    metric_filter: MetricFilter
    skip_unchanged_timer_duration_metrics: bool
    skip_unchanged_histogram_metrics: bool


@dataclass(frozen=True, slots=True)
class ReporterConfig:
    """Immutable settings of a :class:`StatsDReporter`.

    Attributes:
        prefix: Prepended to every metric name; ``None`` for no prefix.
        tags: Attached, in order, to every line.
        rate_unit: Rates are reported in events per this unit.
        duration_unit: Timer durations are reported in this unit.
        metric_filter: Only metrics accepted by this predicate are reported.
        skip_unchanged_timer_duration_metrics: Skip a timer's duration
            statistics while its count is unchanged.
        skip_unchanged_histogram_metrics: Skip a histogram's value statistics
            while its count is unchanged.
    """

    prefix: str | None = None
    tags: tuple[str, ...] = ()
    rate_unit: TimeUnit = TimeUnit.SECONDS
    duration_unit: TimeUnit = TimeUnit.MILLISECONDS
    metric_filter: MetricFilter = ALL_METRICS
    skip_unchanged_timer_duration_metrics: bool = True
    skip_unchanged_histogram_metrics: bool = True

    def update(self, **changes: Unpack[_ConfigChanges]) -> ReporterConfig:
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


class Builder:
    """Fluent builder for :class:`StatsDReporter`.

    Defaults to no prefix, no tags, rates per second, durations in
    milliseconds, no filtering and skipping unchanged distribution
    statistics.
    """

    def __init__(self, registry: MetricRegistry) -> None:
        super().__init__()
        self._registry = registry
        self._config = ReporterConfig()

    @property
    def config(self) -> ReporterConfig:
        return self._config

    def prefixed_with(self, prefix: str | None) -> Self:
        """Prefix all metric names with ``prefix``."""
        self._config = self._config.update(prefix=prefix)
        return self

    def with_tags(self, *tags: str) -> Self:
        """Attach ``tags`` to every line; call without arguments to clear."""
        self._config = self._config.update(tags=tuple(tags))
        return self

    def convert_rates_to(self, rate_unit: TimeUnit) -> Self:
        self._config = self._config.update(rate_unit=rate_unit)
        return self

    def convert_durations_to(self, duration_unit: TimeUnit) -> Self:
        self._config = self._config.update(duration_unit=duration_unit)
        return self

    def filter(self, metric_filter: MetricFilter) -> Self:
        """Only report metrics accepted by ``metric_filter``."""
        self._config = self._config.update(metric_filter=metric_filter)
        return self

    def skip_unchanged_metrics(self, skip: bool) -> Self:
        """Set both skip-unchanged flags at once.

        When enabled, a histogram's or timer's distribution statistics are not
        sent while its count stays the same, which keeps a stale value from
        being repeated in the backend. Counts and rates are still sent.
        """
        self._config = self._config.update(
            skip_unchanged_timer_duration_metrics=skip,
            skip_unchanged_histogram_metrics=skip,
        )
        return self

    def skip_unchanged_timer_duration_metrics(self, skip: bool) -> Self:
        self._config = self._config.update(skip_unchanged_timer_duration_metrics=skip)
        return self

    def skip_unchanged_histogram_metrics(self, skip: bool) -> Self:
        self._config = self._config.update(skip_unchanged_histogram_metrics=skip)
        return self

    def build(self, host: str, port: int = DEFAULT_PORT) -> StatsDReporter:
        """Build a reporter sending to ``host:port`` over UDP.

        Raises:
            ReporterConfigError: If host is empty or port is out of range.
        """
        return self.build_with_sender(StatsD(host, port))

    def build_with_sender(self, sender: Sender) -> StatsDReporter:
        """Build a reporter sending through an existing ``sender``."""
        return StatsDReporter(self._registry, sender, self._config)


class StatsDReporter(ScheduledReporter):
    """Publishes every metric of a registry to StatsD as gauge lines.

    Not safe for concurrent :meth:`report` calls. Scheduled cycles are
    serialized by :meth:`ScheduledReporter.report_now`; callers invoking
    :meth:`report` directly must not overlap cycles either.
    """

    def __init__(
        self,
        registry: MetricRegistry,
        sender: Sender,
        config: ReporterConfig | None = None,
    ) -> None:
        config = config or ReporterConfig()
        super().__init__(
            registry,
            "statsd-reporter",
            metric_filter=config.metric_filter,
            rate_unit=config.rate_unit,
            duration_unit=config.duration_unit,
        )
        self._sender = sender
        self._config = config
        self._reporter_log = logger.bind(reporter=self.name)
        # Last count seen per histogram/timer name. Single writer: only the
        # thread running the current cycle touches it.
        self._metric_counts: dict[str, int] = {}

    @classmethod
    def for_registry(cls, registry: MetricRegistry) -> Builder:
        return Builder(registry)

    @property
    def config(self) -> ReporterConfig:
        return self._config

    @property
    def sender(self) -> Sender:
        return self._sender

    def report(self, snapshot: MetricSnapshot) -> None:
        """Send one cycle of metrics.

        Transport failures (:class:`OSError`) end the cycle early and are
        logged; the sender is closed on every path.
        """
        try:
            self._sender.open()
            self._report_gauges(snapshot.gauges)
            for name, counter in snapshot.counters.items():
                self._report_counter(name, counter)
            for name, histogram in snapshot.histograms.items():
                self._report_histogram(name, histogram)
            for name, meter in snapshot.meters.items():
                self._report_metered(name, meter)
            for name, timer in snapshot.timers.items():
                self._report_timer(name, timer)
        except OSError:
            self._reporter_log.warning(
                "Unable to report to StatsD",
                event="statsd.report.failed",
                context={"sender": repr(self._sender)},
                exc_info=True,
            )
        finally:
            try:
                self._sender.close()
            except OSError:
                self._reporter_log.debug(
                    "Error disconnecting from StatsD",
                    event="statsd.close.failed",
                    context={"sender": repr(self._sender)},
                    exc_info=True,
                )

    def _metric_changed(self, name: str, count: int) -> bool:
        previous = self._metric_counts.get(name)
        self._metric_counts[name] = count
        return previous is None or previous != count

    def _report_gauges(self, gauges: Mapping[str, GaugeView]) -> None:
        for name, gauge in gauges.items():
            try:
                value = gauge.value
            except Exception:
                self._reporter_log.debug(
                    "Unable to read gauge",
                    event="statsd.gauge.failed",
                    context={"metric": name},
                    exc_info=True,
                )
                continue
            self._send(name, value)

    def _report_counter(self, name: str, counter: CountingView) -> None:
        self._send(name, counter.count)

    def _report_histogram(self, name: str, histogram: SamplingView) -> None:
        snapshot = histogram.snapshot()
        count = histogram.count
        self._send(name, count, "count")
        skip = self._config.skip_unchanged_histogram_metrics
        if not skip or self._metric_changed(name, count):
            for suffix, stat in _DISTRIBUTION_STATS:
                self._send(name, stat(snapshot), suffix)

    def _report_timer(self, name: str, timer: TimerView) -> None:
        snapshot = timer.snapshot()
        skip = self._config.skip_unchanged_timer_duration_metrics
        if not skip or self._metric_changed(name, timer.count):
            for suffix, stat in _DISTRIBUTION_STATS:
                self._send(name, self.convert_duration(stat(snapshot)), suffix)
        self._report_metered(name, timer)

    def _report_metered(self, name: str, meter: MeteredView) -> None:
        self._send(name, meter.count, "count")
        self._send(name, self.convert_rate(meter.one_minute_rate), "m1_rate")
        self._send(name, self.convert_rate(meter.five_minute_rate), "m5_rate")
        self._send(name, self.convert_rate(meter.fifteen_minute_rate), "m15_rate")
        self._send(name, self.convert_rate(meter.mean_rate), "mean_rate")

    def _send(self, name: str, value: object, *suffixes: str) -> None:
        formatted = format_value(value)
        if formatted is None:
            return
        self._sender.send(
            MetricRegistry.name(self._config.prefix, name, *suffixes),
            formatted,
            self._config.tags,
        )


__all__ = [
    "Builder",
    "ReporterConfig",
    "StatsDReporter",
    "format_value",
]
