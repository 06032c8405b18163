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

"""Tests for sampled-value snapshots and the sliding window reservoir."""

from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from metrics_statsd.registry import SlidingWindowReservoir, Snapshot


class TestSnapshot:
    """Tests for snapshot statistics."""

    def test_values_sorted(self) -> None:
        snapshot = Snapshot.of([5, 1, 3])

        assert snapshot.values == (1, 3, 5)
        assert snapshot.size == 3

    def test_statistics(self) -> None:
        snapshot = Snapshot.of([5, 1, 2, 3, 4])

        assert snapshot.min == 1
        assert snapshot.max == 5
        assert snapshot.mean == 3.0
        assert snapshot.stddev == pytest.approx(1.5811, abs=1e-4)
        assert snapshot.median == 3.0
        assert snapshot.p75 == 4.5
        assert snapshot.p95 == 5.0
        assert snapshot.p98 == 5.0
        assert snapshot.p99 == 5.0
        assert snapshot.p999 == 5.0

    def test_low_quantile_clamps_to_min(self) -> None:
        snapshot = Snapshot.of([10, 20, 30])

        assert snapshot.value(0.0) == 10.0
        assert snapshot.value(0.1) == 10.0

    def test_empty_snapshot_is_all_zero(self) -> None:
        snapshot = Snapshot()

        assert snapshot.size == 0
        assert snapshot.min == 0
        assert snapshot.max == 0
        assert snapshot.mean == 0.0
        assert snapshot.stddev == 0.0
        assert snapshot.median == 0.0
        assert snapshot.p999 == 0.0

    def test_single_value_has_zero_stddev(self) -> None:
        snapshot = Snapshot.of([7])

        assert snapshot.stddev == 0.0
        assert snapshot.median == 7.0

    @pytest.mark.parametrize("quantile", [-0.1, 1.1, math.nan])
    def test_invalid_quantile_rejected(self, quantile: float) -> None:
        with pytest.raises(ValueError, match="not in"):
            Snapshot.of([1, 2]).value(quantile)

    @given(
        st.lists(
            st.integers(min_value=-(10**9), max_value=10**9), min_size=1, max_size=50
        ),
        st.floats(min_value=0.0, max_value=1.0),
    )
    def test_quantile_within_bounds(self, values: list[int], quantile: float) -> None:
        snapshot = Snapshot.of(values)

        assert snapshot.min <= snapshot.value(quantile) <= snapshot.max

    @given(
        st.lists(
            st.integers(min_value=-(10**6), max_value=10**6), min_size=2, max_size=50
        )
    )
    def test_quantiles_are_monotonic(self, values: list[int]) -> None:
        snapshot = Snapshot.of(values)
        quantiles = [snapshot.median, snapshot.p75, snapshot.p95, snapshot.p99]

        assert quantiles == sorted(quantiles)


class TestSlidingWindowReservoir:
    """Tests for the reservoir feeding histograms and timers."""

    def test_keeps_most_recent_samples(self) -> None:
        reservoir = SlidingWindowReservoir(3)
        for value in range(1, 6):
            reservoir.update(value)

        assert len(reservoir) == 3
        assert reservoir.snapshot().values == (3, 4, 5)

    def test_snapshot_is_detached(self) -> None:
        reservoir = SlidingWindowReservoir(3)
        reservoir.update(1)
        snapshot = reservoir.snapshot()

        reservoir.update(2)

        assert snapshot.values == (1,)

    def test_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            SlidingWindowReservoir(0)
