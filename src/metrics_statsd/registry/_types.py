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

"""Read-only views of metrics as consumed by reporters.

Reporters depend on these protocols rather than on the concrete classes in
:mod:`metrics_statsd.registry._primitives`, so any registry exposing the same
accessors can be reported.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ._snapshot import Snapshot


@runtime_checkable
class GaugeView(Protocol):
    """A point-in-time value of arbitrary type."""

    @property
    def value(self) -> object: ...


@runtime_checkable
class CountingView(Protocol):
    """A monotonic (or, for counters, settable) event count."""

    @property
    def count(self) -> int: ...


@runtime_checkable
class SamplingView(CountingView, Protocol):
    """A count plus a snapshot of the sample distribution."""

    def snapshot(self) -> Snapshot: ...


@runtime_checkable
class MeteredView(CountingView, Protocol):
    """A count plus moving-average and mean rates in events per second."""

    @property
    def one_minute_rate(self) -> float: ...

    @property
    def five_minute_rate(self) -> float: ...

    @property
    def fifteen_minute_rate(self) -> float: ...

    @property
    def mean_rate(self) -> float: ...


@runtime_checkable
class TimerView(MeteredView, SamplingView, Protocol):
    """A meter paired with a distribution of durations in nanoseconds."""


__all__ = [
    "CountingView",
    "GaugeView",
    "MeteredView",
    "SamplingView",
    "TimerView",
]
