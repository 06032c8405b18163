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

"""Tests for clock and time unit helpers."""

from __future__ import annotations

import threading

import pytest

from metrics_statsd import SYSTEM_CLOCK, Clock, FakeClock, SystemClock, TimeUnit


class TestSystemClock:
    def test_tick_is_monotonic(self) -> None:
        first = SYSTEM_CLOCK.tick()
        second = SYSTEM_CLOCK.tick()

        assert second >= first

    def test_satisfies_protocol(self) -> None:
        assert isinstance(SystemClock(), Clock)
        assert isinstance(FakeClock(), Clock)


class TestFakeClock:
    def test_starts_at_zero(self) -> None:
        assert FakeClock().tick() == 0

    def test_advance_seconds(self) -> None:
        clock = FakeClock()

        clock.advance(1.5)

        assert clock.tick() == 1_500_000_000

    def test_advance_nanos(self) -> None:
        clock = FakeClock()

        clock.advance_nanos(42)

        assert clock.tick() == 42

    def test_negative_advance_rejected(self) -> None:
        clock = FakeClock()

        with pytest.raises(ValueError, match="negative"):
            clock.advance(-1)

    def test_concurrent_advances(self) -> None:
        clock = FakeClock()
        threads = [
            threading.Thread(target=lambda: [clock.advance_nanos(1) for _ in range(100)])
            for _ in range(8)
        ]

        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert clock.tick() == 800


class TestTimeUnit:
    def test_nanos(self) -> None:
        assert TimeUnit.NANOSECONDS.nanos == 1
        assert TimeUnit.MILLISECONDS.nanos == 1_000_000
        assert TimeUnit.DAYS.nanos == 86_400 * 1_000_000_000

    def test_to_seconds(self) -> None:
        assert TimeUnit.MINUTES.to_seconds(2) == 120
        assert TimeUnit.MILLISECONDS.to_seconds(500) == 0.5

    def test_to_nanos(self) -> None:
        assert TimeUnit.MICROSECONDS.to_nanos(3) == 3_000

    @pytest.mark.parametrize(
        ("target", "amount", "source", "expected"),
        [
            (TimeUnit.MILLISECONDS, 2, TimeUnit.SECONDS, 2_000),
            (TimeUnit.SECONDS, 90, TimeUnit.MINUTES, 5_400),
            (TimeUnit.HOURS, 30, TimeUnit.MINUTES, 0.5),
            (TimeUnit.MICROSECONDS, 1, TimeUnit.NANOSECONDS, 0.001),
        ],
    )
    def test_convert(
        self, target: TimeUnit, amount: float, source: TimeUnit, expected: float
    ) -> None:
        assert target.convert(amount, source) == pytest.approx(expected)
