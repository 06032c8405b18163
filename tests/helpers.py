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

"""Shared test doubles for reporter and sender tests."""

from __future__ import annotations

import socket
import threading
import time
from collections.abc import Sequence

from metrics_statsd import format_line


class RecordingSender:
    """In-memory sender that records every line it is asked to send.

    Args:
        fail_open: Raise ``OSError`` from :meth:`open`.
        fail_close: Raise ``OSError`` from :meth:`close`.
        fail_after: Raise ``OSError`` from :meth:`send` once this many lines
            have been recorded.
    """

    def __init__(
        self,
        *,
        fail_open: bool = False,
        fail_close: bool = False,
        fail_after: int | None = None,
    ) -> None:
        super().__init__()
        self.fail_open = fail_open
        self.fail_close = fail_close
        self.fail_after = fail_after
        self.lines: list[str] = []
        self.open_calls = 0
        self.close_calls = 0
        self.is_open = False

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise OSError("Connection refused")
        self.is_open = True

    def send(self, name: str, value: str, tags: Sequence[str] | None) -> None:
        assert self.is_open, "send() called on a closed sender"
        if self.fail_after is not None and len(self.lines) >= self.fail_after:
            raise OSError("Network unreachable")
        self.lines.append(format_line(name, value, tags))

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        if self.fail_close:
            raise OSError("Bad file descriptor")

    @property
    def names(self) -> list[str]:
        """Metric names of the recorded lines, in send order."""
        return [line.split(":", 1)[0] for line in self.lines]

    def values(self) -> dict[str, str]:
        """Map of metric name to value for the recorded lines."""
        return {
            name: rest.split("|", 1)[0]
            for name, rest in (line.split(":", 1) for line in self.lines)
        }

    def clear(self) -> None:
        self.lines.clear()


class UDPStatsdServer:
    """Loopback UDP server that captures StatsD datagrams."""

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))
        self._socket.settimeout(0.1)
        self._port: int = self._socket.getsockname()[1]
        self._running = False
        self._packets: list[bytes] = []
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        return self._port

    @property
    def packets(self) -> list[bytes]:
        with self._lock:
            return list(self._packets)

    def start(self) -> None:
        self._running = True
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        if self._thread:
            self._thread.join(timeout=1.0)
        self._socket.close()

    def wait_for_packets(self, count: int, timeout: float = 1.0) -> bool:
        """Wait until at least ``count`` packets arrived or ``timeout`` passed."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self._packets) >= count:
                    return True
            time.sleep(0.01)
        return False

    def _run(self) -> None:
        while self._running:
            try:
                data, _ = self._socket.recvfrom(4096)
            except TimeoutError:
                continue
            except OSError:
                break
            with self._lock:
                self._packets.append(data)
