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

"""Exponentially weighted moving averages for meter rates."""

from __future__ import annotations

import math
import threading
from typing import Final

from ..units import TimeUnit

TICK_INTERVAL_SECONDS: Final[int] = 5
TICK_INTERVAL_NANOS: Final[int] = TICK_INTERVAL_SECONDS * TimeUnit.SECONDS.nanos


def _alpha(minutes: int) -> float:
    return 1 - math.exp(-TICK_INTERVAL_SECONDS / 60.0 / minutes)


class EWMA:
    """Moving average of an event rate, decayed every tick interval.

    Events are accumulated with :meth:`update` and folded into the average by
    :meth:`tick`, which the owning meter calls once per elapsed 5 second
    interval. The first tick seeds the average with the instant rate.
    """

    def __init__(self, alpha: float) -> None:
        super().__init__()
        self._alpha = alpha
        self._uncounted = 0
        self._rate = 0.0  # events per nanosecond
        self._initialized = False
        self._lock = threading.Lock()

    @classmethod
    def one_minute(cls) -> EWMA:
        return cls(_alpha(1))

    @classmethod
    def five_minute(cls) -> EWMA:
        return cls(_alpha(5))

    @classmethod
    def fifteen_minute(cls) -> EWMA:
        return cls(_alpha(15))

    def update(self, n: int) -> None:
        with self._lock:
            self._uncounted += n

    def tick(self) -> None:
        with self._lock:
            instant_rate = self._uncounted / TICK_INTERVAL_NANOS
            self._uncounted = 0
            if self._initialized:
                self._rate += self._alpha * (instant_rate - self._rate)
            else:
                self._rate = instant_rate
                self._initialized = True

    def rate(self, unit: TimeUnit = TimeUnit.SECONDS) -> float:
        """Return the averaged rate in events per ``unit``."""
        with self._lock:
            return self._rate * unit.nanos


__all__ = ["EWMA", "TICK_INTERVAL_NANOS"]
