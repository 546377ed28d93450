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

"""
The probing engine.

`ping` sends a single query and waits for its reply. `PingSession` pings a
server at a fixed interval, either with a sender thread and a receiver thread
running side by side (`run`), or one query at a time (`run_sequential`).

A session is stopped by setting its `stop_event`. Nothing is interrupted:
the sender notices while sleeping between queries, and the receiver notices
after each receive, which is bounded by the read timeout of the transport.
"""

import logging
import signal
import threading
import time
from typing import Callable

from .errors import MalformedMessage, TimedOut
from .protocol import build_query, parse_reply, rtype_for_address
from .report import Reporter
from .stats import PingResult, Statistics, Summary
from .table import CorrelationTable, QueryIdCounter
from .transport import BaseTransport
from .utils import normalize_addr, wrapping_sub

# Largest UDP payload
RECV_BUFFER_SIZE = 0xFFFF

# How often the controlling thread checks the stop event
POLL_INTERVAL = 0.1


def ping(
    transport: BaseTransport,
    addr: tuple[str, int],
    id_: int,
    host: str,
    recursive: bool = False,
) -> tuple[int, float]:
    """Ping a DNS server once.

    Replies from other addresses, replies that can't be parsed, and replies
    to other queries are ignored.

    Args:
        transport: The transport to use.
        addr: Address of the server.
        id_: The query id.
        host: The name to ask for.
        recursive: Set the recursion desired flag. Defaults to False.

    Raises:
        MalformedMessage: The query can't be built.
        TimedOut: No reply before the read timeout.
        EOFError: An empty datagram was received.
        OSError: The transport failed.

    Returns:
        The size of the reply, and the round trip time in seconds.
    """
    addr = normalize_addr(addr)
    query = build_query(id_, host, rtype_for_address(addr[0]), recursive)

    start = time.monotonic()
    transport.sendto(query, addr)

    while True:
        data, from_addr = transport.recvfrom(RECV_BUFFER_SIZE)
        elapsed = time.monotonic() - start

        if not data:
            raise EOFError("Received an empty datagram")
        if from_addr != addr:
            logging.debug("Ignoring datagram from %s:%s", *from_addr)
            continue

        try:
            header = parse_reply(data)
        except MalformedMessage as e:
            logging.debug("Ignoring malformed reply: %s", e)
            continue

        if header.id_ == id_:
            return len(data), elapsed
        logging.debug("Ignoring reply with id %d, expected %d", header.id_, id_)


class PingSession:
    """A session pinging one DNS server."""

    def __init__(
        self,
        transport: BaseTransport,
        addr: tuple[str, int],
        host: str,
        interval: float = 1.0,
        count: int = 0,
        recursive: bool = False,
        reporter: Reporter | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Create a PingSession instance.

        Args:
            transport: The transport, with its timeouts already set.
            addr: Address of the server.
            host: The name to ask for.
            interval: Seconds between queries. Defaults to 1.0.
            count: Number of queries to send, 0 for no limit. Defaults to 0.
            recursive: Set the recursion desired flag. Defaults to False.
            reporter: Receives the results. Defaults to None.
            stop_event: Event stopping the session. Defaults to None.
        """
        self.transport = transport
        self.addr = normalize_addr(addr)
        self.host = host
        self.rtype = rtype_for_address(self.addr[0])
        self.interval = interval
        self.count = count
        self.recursive = recursive
        self.reporter = reporter if reporter is not None else Reporter()

        self.stop_event = stop_event if stop_event is not None else threading.Event()
        # Set once the sender has sent `count` queries
        self.sender_done = threading.Event()

        self.stats = Statistics()
        self.table = CorrelationTable()
        self.ids = QueryIdCounter()

        self.error: Exception | None = None
        self._error_lock = threading.Lock()
        # Set when the session ended with a KeyboardInterrupt
        self.interrupted = False

    def stop(self) -> None:
        """Stop the session."""
        self.stop_event.set()

    def install_signal_handlers(self) -> None:
        """Stop the session on SIGTERM. Must be called from the main thread.
        SIGINT is handled as a KeyboardInterrupt."""
        signal.signal(signal.SIGTERM, self._sigterm_handler)

    def _sigterm_handler(self, signum, frame) -> None:
        """Handler for SIGTERM event."""
        logging.info("Received SIGTERM")
        self.stop_event.set()

    def _start(self) -> None:
        # Build one query up front, so a bad name fails before anything is sent
        query = build_query(0, self.host, self.rtype, self.recursive)
        self.reporter.on_start(self.addr, self.host, len(query))

    def _finish(self) -> Summary:
        summary = self.stats.summary()
        self.reporter.on_summary(self.addr, summary)

        if self.error is not None:
            raise self.error
        return summary

    def _fail(self, error: Exception) -> None:
        """Stop the session because of an error. Only the first error is
        kept."""
        with self._error_lock:
            if self.error is None and not self.stop_event.is_set():
                self.error = error
        self.stop_event.set()

    def _guard(self, target: Callable[[], None]) -> None:
        """Run a thread target, turning any error into the end of the
        session."""
        try:
            target()
        except Exception as e:
            logging.debug("%s stopped with an error", target.__name__, exc_info=True)
            self._fail(e)

    def _sleep_until(self, start: float) -> None:
        """Wait for the rest of the interval, unless the session stops."""
        remaining = self.interval - (time.monotonic() - start)
        if remaining > 0:
            self.stop_event.wait(remaining)

    def _sender(self) -> None:
        """Send a query every interval until stopped, or until `count`
        queries are sent."""
        sent = 0
        while not self.stop_event.is_set():
            start = time.monotonic()

            id_ = self.ids.next()
            query = build_query(id_, self.host, self.rtype, self.recursive)

            # Count and register the query before it leaves, so the reply can
            # never be processed first
            self.stats.record_sent()
            self.table.insert(id_, time.monotonic())
            try:
                self.transport.sendto(query, self.addr)
            except OSError as e:
                logging.error("Unable to send query id=%d: %s", id_, e)
                self.reporter.on_error(e)

            sent += 1
            if self.count and sent >= self.count:
                break

            self._sleep_until(start)

        self.sender_done.set()
        if not self.stop_event.is_set():
            self._drain()

    def _drain(self) -> None:
        """Give the last queries one read timeout to be answered, then stop
        the session."""
        if len(self.table):
            timeout = self.transport.read_timeout()
            self.stop_event.wait(timeout if timeout is not None else self.interval)
        self.stop_event.set()

    def _receiver(self) -> None:
        """Receive replies until stopped."""
        while not self.stop_event.is_set():
            try:
                data, addr = self.transport.recvfrom(RECV_BUFFER_SIZE)
            except TimedOut:
                # Whatever is still pending stays lost
                continue
            self._handle_reply(data, addr, time.monotonic())

    def _handle_reply(
        self, data: bytes, addr: tuple[str, int], received_at: float
    ) -> None:
        """Match a reply to its query, and count it.

        Args:
            data: The reply.
            addr: Address the reply came from.
            received_at: Monotonic time the reply was received.
        """
        if addr != self.addr:
            logging.debug("Ignoring datagram from %s:%s", *addr)
            return

        try:
            header = parse_reply(data)
        except MalformedMessage as e:
            logging.debug("Ignoring malformed reply: %s", e)
            return

        sent_at = self.table.pop(header.id_)
        if sent_at is None:
            logging.debug("Ignoring reply with unknown id %d", header.id_)
            return

        elapsed = received_at - sent_at
        sent, received = self.stats.record_reply(elapsed)

        self.reporter.on_reply(
            PingResult(
                size=len(data),
                addr=addr,
                id_=header.id_,
                elapsed=elapsed,
                lost=wrapping_sub(sent, received),
            )
        )

        # Everything is answered, no need to wait for the drain to finish
        if self.sender_done.is_set() and not len(self.table):
            self.stop_event.set()

    def _join_timeout(self) -> float:
        timeout = self.transport.read_timeout()
        return (timeout if timeout is not None else 0) + 1.0

    def run(self) -> Summary:
        """Ping with a sender thread and a receiver thread, until stopped.

        Raises:
            MalformedMessage: The query can't be built.
            OSError: The transport failed while receiving.

        Returns:
            The final statistics.
        """
        self._start()

        sender = threading.Thread(
            target=self._guard,
            args=(self._sender,),
            name="dnsping-sender",
            daemon=True,
        )
        receiver = threading.Thread(
            target=self._guard,
            args=(self._receiver,),
            name="dnsping-receiver",
            daemon=True,
        )
        sender.start()
        receiver.start()

        try:
            while not self.stop_event.is_set():
                self.stop_event.wait(POLL_INTERVAL)
        except KeyboardInterrupt:
            logging.info("Received KeyboardInterrupt")
            self.interrupted = True
            self.stop_event.set()

        sender.join()
        # Without a read timeout the receiver can block forever
        receiver.join(self._join_timeout())
        if receiver.is_alive():
            logging.warning("Receiver is still waiting for a reply, not waiting for it")

        return self._finish()

    def run_sequential(self) -> Summary:
        """Ping one query at a time. Each query waits for its reply, or for
        the read timeout, before the next one is sent.

        Raises:
            MalformedMessage: The query can't be built.
            OSError: The transport failed.

        Returns:
            The final statistics.
        """
        self._start()

        sent = 0
        try:
            while not self.stop_event.is_set():
                start = time.monotonic()
                id_ = self.ids.next()

                self.stats.record_sent()
                try:
                    size, elapsed = ping(
                        self.transport, self.addr, id_, self.host, self.recursive
                    )
                except TimedOut:
                    self.reporter.on_timeout(id_)
                else:
                    sent_so_far, received = self.stats.record_reply(elapsed)
                    self.reporter.on_reply(
                        PingResult(
                            size=size,
                            addr=self.addr,
                            id_=id_,
                            elapsed=elapsed,
                            lost=wrapping_sub(sent_so_far, received),
                        )
                    )

                sent += 1
                if self.count and sent >= self.count:
                    break

                self._sleep_until(start)

        except KeyboardInterrupt:
            logging.info("Received KeyboardInterrupt")
            self.interrupted = True
        except Exception as e:
            self._fail(e)

        return self._finish()
