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

"""Base exception hierarchy for :mod:`metrics_statsd`."""

from __future__ import annotations


class MetricsStatsdError(Exception):
    """Base class for all metrics_statsd exceptions.

    Transport failures are deliberately *not* part of this hierarchy: socket
    errors surface as :class:`OSError` so callers can handle them the same way
    they handle any other network failure.

    Example:
        Catch any library-specific error::

            try:
                reporter = StatsDReporter.for_registry(registry).build("", 8125)
            except MetricsStatsdError as e:
                logger.error("Reporter misconfigured: %s", e)
    """


class SenderStateError(MetricsStatsdError, RuntimeError):
    """Raised when a sender is used out of its open/send/close order.

    A :class:`~metrics_statsd.statsd.StatsD` sender is opened once per
    reporting cycle. Opening it twice without closing, or sending on a sender
    that is not open, indicates overlapping reporting cycles or a misuse of
    the sender outside a reporter.
    """


class ReporterConfigError(MetricsStatsdError, ValueError):
    """Raised when a reporter or sender is built with invalid settings.

    Common causes:
        - Empty StatsD host name
        - Port outside ``0..65535``
        - Non-positive reporting period

    Note:
        This exception also inherits from ``ValueError``.
    """


class DuplicateMetricError(MetricsStatsdError, ValueError):
    """Raised when a metric name is already registered.

    Registering a second metric under an existing name, or asking the registry
    for ``counter("x")`` when ``"x"`` is a timer, both raise this error.
    """


__all__ = [
    "DuplicateMetricError",
    "MetricsStatsdError",
    "ReporterConfigError",
    "SenderStateError",
]
