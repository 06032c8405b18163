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

from __future__ import annotations

from collections.abc import Iterator

import pytest

from metrics_statsd import FakeClock, MetricRegistry
from tests.helpers import RecordingSender, UDPStatsdServer


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> MetricRegistry:
    """Registry whose meters and timers run on the fake clock."""
    return MetricRegistry(clock=clock)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def statsd_server() -> Iterator[UDPStatsdServer]:
    """A running loopback StatsD server."""
    server = UDPStatsdServer()
    server.start()
    yield server
    server.stop()
