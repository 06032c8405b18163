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

"""Time units used for rate and duration conversion."""

from __future__ import annotations

from enum import Enum


class TimeUnit(Enum):
    """A unit of time, valued by its length in nanoseconds."""

    NANOSECONDS = 1
    MICROSECONDS = 1_000
    MILLISECONDS = 1_000_000
    SECONDS = 1_000_000_000
    MINUTES = 60 * 1_000_000_000
    HOURS = 60 * 60 * 1_000_000_000
    DAYS = 24 * 60 * 60 * 1_000_000_000

    @property
    def nanos(self) -> int:
        """Length of one unit in nanoseconds."""
        return self.value

    def to_nanos(self, amount: float) -> float:
        """Express ``amount`` of this unit in nanoseconds."""
        return amount * self.value

    def to_seconds(self, amount: float) -> float:
        """Express ``amount`` of this unit in seconds."""
        return amount * self.value / TimeUnit.SECONDS.value

    def convert(self, amount: float, source: TimeUnit) -> float:
        """Express ``amount`` of ``source`` units in this unit.

        Example::

            TimeUnit.MILLISECONDS.convert(2, TimeUnit.SECONDS)  # 2000.0
        """
        return amount * source.value / self.value


__all__ = ["TimeUnit"]
