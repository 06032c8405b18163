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

"""Sampled-value snapshots and the reservoir that feeds them."""

from __future__ import annotations

import math
import threading
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_RESERVOIR_SIZE = 1028
"""Sample window kept by histograms and timers unless overridden."""


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Read-only statistical view over a window of sampled values.

    Quantiles are estimated with linear interpolation between the two nearest
    ranks. Every statistic of an empty snapshot is ``0``.

    Attributes:
        values: Sampled values in ascending order.
    """

    values: tuple[float, ...] = ()

    @classmethod
    def of(cls, values: Iterable[float]) -> Snapshot:
        """Build a snapshot from unsorted sample values."""
        return cls(values=tuple(sorted(values)))

    @property
    def size(self) -> int:
        return len(self.values)

    def value(self, quantile: float) -> float:
        """Return the value at ``quantile``.

        Args:
            quantile: A quantile in ``[0.0, 1.0]``.

        Raises:
            ValueError: If quantile is outside ``[0.0, 1.0]`` or NaN.
        """
        if not 0.0 <= quantile <= 1.0:
            raise ValueError(f"{quantile} is not in [0..1]")
        if not self.values:
            return 0.0

        pos = quantile * (len(self.values) + 1)
        index = int(pos)
        if index < 1:
            return float(self.values[0])
        if index >= len(self.values):
            return float(self.values[-1])

        lower = self.values[index - 1]
        upper = self.values[index]
        return lower + (pos - math.floor(pos)) * (upper - lower)

    @property
    def median(self) -> float:
        return self.value(0.5)

    @property
    def p75(self) -> float:
        return self.value(0.75)

    @property
    def p95(self) -> float:
        return self.value(0.95)

    @property
    def p98(self) -> float:
        return self.value(0.98)

    @property
    def p99(self) -> float:
        return self.value(0.99)

    @property
    def p999(self) -> float:
        return self.value(0.999)

    @property
    def max(self) -> float:
        return self.values[-1] if self.values else 0

    @property
    def min(self) -> float:
        return self.values[0] if self.values else 0

    @property
    def mean(self) -> float:
        if not self.values:
            return 0.0
        return math.fsum(self.values) / len(self.values)

    @property
    def stddev(self) -> float:
        """Sample standard deviation (``n - 1`` denominator)."""
        if len(self.values) <= 1:
            return 0.0
        mean = self.mean
        variance = math.fsum((v - mean) ** 2 for v in self.values)
        return math.sqrt(variance / (len(self.values) - 1))


class SlidingWindowReservoir:
    """Keeps the most recent ``size`` samples.

    Thread-safe: updates from recording threads may race with snapshots taken
    by the reporter thread.
    """

    def __init__(self, size: int = DEFAULT_RESERVOIR_SIZE) -> None:
        super().__init__()
        if size < 1:
            raise ValueError("Reservoir size must be positive")
        self._samples: deque[float] = deque(maxlen=size)
        self._lock = threading.Lock()

    def update(self, value: float) -> None:
        with self._lock:
            self._samples.append(value)

    def snapshot(self) -> Snapshot:
        with self._lock:
            samples = list(self._samples)
        return Snapshot.of(samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


__all__ = [
    "DEFAULT_RESERVOIR_SIZE",
    "SlidingWindowReservoir",
    "Snapshot",
]
