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

import threading

from .utils import ID_MASK, wrapping_add


class QueryIdCounter:
    """A 16 bit query id that wraps around to 0 after 65535."""

    def __init__(self, start: int = 0) -> None:
        self._next = start & ID_MASK

    def next(self) -> int:
        """Get the next query id.

        Returns:
            The query id.
        """
        id_ = self._next
        self._next = wrapping_add(self._next, 1, ID_MASK)
        return id_


class CorrelationTable:
    """Maps the id of every query still waiting for a reply to the time it
    was sent.

    The sender inserts, the receiver pops, so every operation takes the lock.
    Entries are only removed when their reply is matched. A query that never
    gets a reply stays until its id comes around again, and the newer query
    overwrites it. A reply that arrives after that is matched to the newer
    query.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.pending: dict[int, float] = {}

    def insert(self, id_: int, sent_at: float) -> None:
        """Record that a query was sent.

        Args:
            id_: The query id.
            sent_at: Monotonic time the query was sent.
        """
        with self.lock:
            self.pending[id_] = sent_at

    def pop(self, id_: int) -> float | None:
        """Remove a pending query.

        Args:
            id_: The query id from the reply.

        Returns:
            The time the query was sent, or None if the id isn't pending.
        """
        with self.lock:
            return self.pending.pop(id_, None)

    def __contains__(self, id_: int) -> bool:
        with self.lock:
            return id_ in self.pending

    def __len__(self) -> int:
        with self.lock:
            return len(self.pending)
