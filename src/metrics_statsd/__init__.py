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

"""Report in-process metrics to StatsD.

Quick Start::

    from metrics_statsd import MetricRegistry, StatsDReporter, TimeUnit

    registry = MetricRegistry()
    reporter = (
        StatsDReporter.for_registry(registry)
        .prefixed_with("myapp")
        .with_tags("env:prod")
        .convert_durations_to(TimeUnit.MILLISECONDS)
        .build("localhost", 8125)
    )
    reporter.start(10.0)

    registry.counter("jobs.completed").inc()
    with registry.timer("jobs.duration").time():
        run_job()

Every reported value is sent as a StatsD gauge line, one UDP datagram per
line::

    myapp.jobs.completed:1|g|#env:prod
    myapp.jobs.duration.p99:12.34|g|#env:prod

Reporters
---------

- :class:`StatsDReporter`: sends a registry to a StatsD server
- :class:`ScheduledReporter`: base class running reports on a fixed period

Transport
---------

- :class:`StatsD`: UDP sender, opened and closed once per reporting cycle
"""

from __future__ import annotations

from .clock import SYSTEM_CLOCK, Clock, FakeClock, SystemClock
from .errors import (
    DuplicateMetricError,
    MetricsStatsdError,
    ReporterConfigError,
    SenderStateError,
)
from .registry import (
    ALL_METRICS,
    Counter,
    Gauge,
    Histogram,
    Meter,
    MetricFilter,
    MetricRegistry,
    MetricSnapshot,
    Snapshot,
    Timer,
)
from .reporter import Builder, ReporterConfig, StatsDReporter, format_value
from .scheduled import ScheduledReporter
from .statsd import DEFAULT_PORT, Sender, StatsD, format_line
from .units import TimeUnit

__all__ = [
    "ALL_METRICS",
    "DEFAULT_PORT",
    "SYSTEM_CLOCK",
    "Builder",
    "Clock",
    "Counter",
    "DuplicateMetricError",
    "FakeClock",
    "Gauge",
    "Histogram",
    "Meter",
    "MetricFilter",
    "MetricRegistry",
    "MetricSnapshot",
    "MetricsStatsdError",
    "ReporterConfig",
    "ReporterConfigError",
    "ScheduledReporter",
    "Sender",
    "SenderStateError",
    "Snapshot",
    "StatsD",
    "StatsDReporter",
    "SystemClock",
    "TimeUnit",
    "Timer",
    "format_line",
    "format_value",
]
