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

"""StatsD datagram sender.

Lines follow the StatsD gauge format with the DogStatsD tag extension::

    <name>:<value>|g
    <name>:<value>|g|#tag1,tag2

Every line is sent as its own UDP datagram. The sender is opened and closed
once per reporting cycle; host names are resolved on every :meth:`StatsD.open`
so address changes are picked up without restarting the reporter.
"""

from __future__ import annotations

import re
import socket
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Final, Protocol, Self

from .errors import ReporterConfigError, SenderStateError
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_PORT: Final[int] = 8125

# Runs of characters that would break the line framing.
_NAME_UNSAFE = re.compile(r"[\s:|]+")
_TAG_UNSAFE = re.compile(r"[\s,|]+")

type SocketFactory = Callable[[socket.AddressFamily], socket.socket]
"""Creates an unconnected datagram socket for the given address family."""


def _datagram_socket(family: socket.AddressFamily) -> socket.socket:
    return socket.socket(family, socket.SOCK_DGRAM)


def sanitize(text: str) -> str:
    """Replace every run of whitespace, ``:`` or ``|`` with ``-``."""
    return _NAME_UNSAFE.sub("-", text)


def sanitize_tag(tag: str) -> str:
    """Replace every run of whitespace, ``,`` or ``|`` with ``-``.

    ``:`` is kept so ``key:value`` tags survive.
    """
    return _TAG_UNSAFE.sub("-", tag)


def format_line(name: str, value: str, tags: Sequence[str] | None = None) -> str:
    """Encode one gauge line.

    Example::

        format_line("app.hits", "5", ["env:prod"])  # "app.hits:5|g|#env:prod"
    """
    tag_str = "|#" + ",".join(map(sanitize_tag, tags)) if tags else ""
    return f"{sanitize(name)}:{sanitize(value)}|g{tag_str}"


class Sender(Protocol):
    """Transport used by :class:`~metrics_statsd.reporter.StatsDReporter`."""

    def open(self) -> None: ...

    def send(self, name: str, value: str, tags: Sequence[str] | None) -> None: ...

    def close(self) -> None: ...


class StatsD:
    """UDP client sending one gauge line per datagram.

    Sends are best-effort: a failed send is counted and logged, never raised.
    The first failure after a success is logged as a warning and subsequent
    consecutive failures at debug level.

    Args:
        host: StatsD server hostname or address.
        port: StatsD server port.
        socket_factory: Creates the datagram socket on :meth:`open`.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        socket_factory: SocketFactory = _datagram_socket,
    ) -> None:
        super().__init__()
        if not host:
            raise ReporterConfigError("StatsD host must not be empty")
        if not 0 <= port <= 65535:
            raise ReporterConfigError(f"StatsD port out of range: {port}")
        self._host = host
        self._port = port
        self._socket_factory = socket_factory
        self._socket: socket.socket | None = None
        self._address: tuple[str, int] | tuple[str, int, int, int] | None = None
        self._failures = 0
        self._log = logger.bind(host=host, port=port)

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def failures(self) -> int:
        """Number of consecutive failed sends."""
        return self._failures

    @property
    def is_open(self) -> bool:
        return self._socket is not None

    def open(self) -> None:
        """Resolve the server address and create the socket.

        Raises:
            SenderStateError: If the sender is already open.
            OSError: If the host cannot be resolved or the socket cannot be
                created.
        """
        if self._socket is not None:
            raise SenderStateError("Already connected")
        family, _, _, _, address = socket.getaddrinfo(
            self._host, self._port, type=socket.SOCK_DGRAM
        )[0]
        self._socket = self._socket_factory(family)
        self._address = address

    def send(self, name: str, value: str, tags: Sequence[str] | None = None) -> None:
        """Send ``name:value|g`` with optional tags as a single datagram.

        Raises:
            SenderStateError: If the sender is not open.
        """
        sock = self._socket
        if sock is None or self._address is None:
            raise SenderStateError("Not connected")
        data = format_line(name, value, tags).encode("utf-8")
        try:
            _ = sock.sendto(data, self._address)
        except OSError:
            self._failures += 1
            if self._failures == 1:
                self._log.warning(
                    "Unable to send packet to StatsD",
                    event="statsd.send.failed",
                    context={"failures": self._failures},
                    exc_info=True,
                )
            else:
                self._log.debug(
                    "Unable to send packet to StatsD",
                    event="statsd.send.failed",
                    context={"failures": self._failures},
                )
        else:
            self._failures = 0

    def close(self) -> None:
        """Close the socket. Safe to call when not open."""
        sock, self._socket = self._socket, None
        self._address = None
        if sock is not None:
            sock.close()

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"StatsD(host={self._host!r}, port={self._port})"


__all__ = [
    "DEFAULT_PORT",
    "Sender",
    "SocketFactory",
    "StatsD",
    "format_line",
    "sanitize",
    "sanitize_tag",
]
