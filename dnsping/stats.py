# dnsping
# Measure the latency and packet loss of a DNS server, like ping
# Copyright (c) 2025 ninjamar

# MIT License

# Copyright (c) 2025 ninjamar

# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.

# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import dataclasses
import threading

from .utils import wrapping_add, wrapping_sub


@dataclasses.dataclass(frozen=True)
class PingResult:
    """A query that got a reply."""

    size: int
    addr: tuple[str, int]
    id_: int
    # Seconds
    elapsed: float
    # Queries sent so far without a reply, 0 if none
    lost: int = 0


@dataclasses.dataclass(frozen=True)
class Summary:
    """Final statistics of a session. Latencies are in seconds, and are None
    when nothing was received."""

    sent: int
    received: int
    lost: int
    loss_percent: float
    min: float | None
    avg: float | None
    max: float | None


class Statistics:
    """Running totals of a session.

    The counters are unsigned 64 bit integers that wrap around, so anything
    subtracting them has to use `wrapping_sub`.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()

        self.sent = 0
        self.received = 0

        self.total = 0.0
        self.min: float | None = None
        self.max: float | None = None

    def record_sent(self) -> int:
        """Count a query as sent.

        Returns:
            The number of queries sent so far.
        """
        with self.lock:
            self.sent = wrapping_add(self.sent, 1)
            return self.sent

    def record_reply(self, elapsed: float) -> tuple[int, int]:
        """Count a reply and fold its latency into the totals.

        Args:
            elapsed: Round trip time in seconds.

        Returns:
            The number of queries sent and replies received so far.
        """
        with self.lock:
            self.received = wrapping_add(self.received, 1)
            self.total += elapsed
            if self.min is None or elapsed < self.min:
                self.min = elapsed
            if self.max is None or elapsed > self.max:
                self.max = elapsed
            return self.sent, self.received

    def summary(self) -> Summary:
        """Compute the final statistics.

        Returns:
            The summary.
        """
        with self.lock:
            sent, received = self.sent, self.received
            total, min_, max_ = self.total, self.min, self.max

        lost = wrapping_sub(sent, received)
        if sent == 0:
            loss_percent = 0.0
        else:
            # sent may have wrapped around while received hasn't
            loss_percent = min(lost / sent * 100, 100.0)

        if received == 0:
            return Summary(sent, received, lost, loss_percent, None, None, None)

        return Summary(
            sent=sent,
            received=received,
            lost=lost,
            loss_percent=loss_percent,
            min=min_,
            avg=total / received,
            max=max_,
        )
