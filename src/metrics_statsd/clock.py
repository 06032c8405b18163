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

"""Controllable tick source for meters and timers.

Meters decay their moving averages and timers measure durations against a
monotonic tick expressed in integer nanoseconds. Production code uses
:data:`SYSTEM_CLOCK`; tests inject :class:`FakeClock` and advance it
explicitly::

    clock = FakeClock()
    meter = Meter(clock=clock)
    meter.mark(10)
    clock.advance(5)  # seconds
    assert meter.one_minute_rate > 0
"""

from __future__ import annotations

import threading
import time as _time
from dataclasses import dataclass, field
from typing import Final, Protocol, runtime_checkable

_NANOS_PER_SECOND: Final[int] = 1_000_000_000


@runtime_checkable
class Clock(Protocol):
    """Protocol for monotonic time measured in nanoseconds.

    The zero point is arbitrary; only differences between ticks are
    meaningful.
    """

    def tick(self) -> int:
        """Return the current monotonic time in nanoseconds."""
        ...


@dataclass(frozen=True, slots=True)
class SystemClock:
    """Production clock backed by :func:`time.monotonic_ns`."""

    def tick(self) -> int:
        return _time.monotonic_ns()


SYSTEM_CLOCK: Final[Clock] = SystemClock()
"""Default clock instance shared by registry metrics."""


@dataclass
class FakeClock:
    """Manually advanced clock for deterministic tests.

    Thread-safety:
        All operations are guarded by a lock, so timers on worker threads can
        read the clock while the test thread advances it.
    """

    _tick: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def tick(self) -> int:
        with self._lock:
            return self._tick

    def advance(self, seconds: float) -> None:
        """Advance the clock by ``seconds``.

        Raises:
            ValueError: If seconds is negative.
        """
        self.advance_nanos(round(seconds * _NANOS_PER_SECOND))

    def advance_nanos(self, nanos: int) -> None:
        """Advance the clock by ``nanos`` nanoseconds."""
        if nanos < 0:
            msg = "Cannot advance time by a negative amount"
            raise ValueError(msg)
        with self._lock:
            self._tick += nanos


__all__ = [
    "SYSTEM_CLOCK",
    "Clock",
    "FakeClock",
    "SystemClock",
]
