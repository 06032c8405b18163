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

"""In-process metrics registry.

Provides the metrics a reporter samples on every cycle: gauges, counters,
histograms, meters and timers, all registered by dotted name on a
:class:`MetricRegistry`::

    from metrics_statsd.registry import MetricRegistry

    registry = MetricRegistry()
    registry.counter("jobs.completed").inc()
    with registry.timer("jobs.duration").time():
        run_job()

    snapshot = registry.snapshot()
"""

from __future__ import annotations

from ._ewma import EWMA
from ._primitives import Counter, Gauge, Histogram, Meter, Metric, Timer
from ._registry import ALL_METRICS, MetricFilter, MetricRegistry, MetricSnapshot
from ._snapshot import DEFAULT_RESERVOIR_SIZE, SlidingWindowReservoir, Snapshot
from ._types import CountingView, GaugeView, MeteredView, SamplingView, TimerView

__all__ = [
    "ALL_METRICS",
    "DEFAULT_RESERVOIR_SIZE",
    "EWMA",
    "Counter",
    "CountingView",
    "Gauge",
    "GaugeView",
    "Histogram",
    "Meter",
    "MeteredView",
    "Metric",
    "MetricFilter",
    "MetricRegistry",
    "MetricSnapshot",
    "SamplingView",
    "SlidingWindowReservoir",
    "Snapshot",
    "Timer",
    "TimerView",
]
