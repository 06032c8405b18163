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

"""Tests for exponentially weighted moving averages."""

from __future__ import annotations

import math
from collections.abc import Callable

import pytest

from metrics_statsd import TimeUnit
from metrics_statsd.registry import EWMA


def _elapse_minute(ewma: EWMA) -> None:
    for _ in range(12):
        ewma.tick()


class TestEWMA:
    def test_rate_is_zero_before_first_tick(self) -> None:
        ewma = EWMA.one_minute()
        ewma.update(3)

        assert ewma.rate() == 0.0

    def test_first_tick_uses_instant_rate(self) -> None:
        ewma = EWMA.one_minute()
        ewma.update(3)

        ewma.tick()

        assert ewma.rate() == pytest.approx(0.6)

    @pytest.mark.parametrize(
        ("factory", "minutes"),
        [
            (EWMA.one_minute, 1),
            (EWMA.five_minute, 5),
            (EWMA.fifteen_minute, 15),
        ],
    )
    def test_decay_after_one_minute(self, factory: Callable[[], EWMA], minutes: int) -> None:
        ewma = factory()
        ewma.update(3)
        ewma.tick()

        _elapse_minute(ewma)

        assert ewma.rate() == pytest.approx(0.6 * math.exp(-1 / minutes))

    def test_rate_in_other_unit(self) -> None:
        ewma = EWMA.one_minute()
        ewma.update(3)
        ewma.tick()

        assert ewma.rate(TimeUnit.MINUTES) == pytest.approx(36.0)
        assert ewma.rate(TimeUnit.MILLISECONDS) == pytest.approx(0.0006)
