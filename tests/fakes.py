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

import queue

from dnsping.errors import TimedOut
from dnsping.report import Reporter
from dnsping.transport import BaseTransport
from tests.servers.dns_echo import make_reply

SERVER = ("192.0.2.53", 53)


class FakeTransport(BaseTransport):
    """A transport without a socket. Replies are produced by `responder`, and
    can also be pushed into `inbox` directly. Anything in the inbox that is an
    exception is raised by `recvfrom`."""

    def __init__(self, responder=None) -> None:
        self.inbox: queue.Queue = queue.Queue()
        self.sent: list[tuple[bytes, tuple[str, int]]] = []
        self.responder = responder
        self.send_error: OSError | None = None
        self.closed = False

        self._read_timeout = None
        self._write_timeout = None

    @classmethod
    def bind(cls, *args, **kwargs) -> "FakeTransport":
        return cls(*args, **kwargs)

    def sendto(self, data: bytes, addr: tuple[str, int]) -> int:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((data, addr))
        if self.responder is not None:
            for item in self.responder(data, addr):
                self.inbox.put(item)
        return len(data)

    def recvfrom(self, bufsize: int) -> tuple[bytes, tuple[str, int]]:
        try:
            item = self.inbox.get(timeout=self._read_timeout)
        except queue.Empty:
            raise TimedOut("Operation timed out")
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class RecordingReporter(Reporter):
    def __init__(self) -> None:
        self.started = []
        self.replies = []
        self.timeouts = []
        self.errors = []
        self.summaries = []

    def on_start(self, addr, host, size):
        self.started.append((addr, host, size))

    def on_reply(self, result):
        self.replies.append(result)

    def on_timeout(self, id_):
        self.timeouts.append(id_)

    def on_error(self, error):
        self.errors.append(error)

    def on_summary(self, addr, summary):
        self.summaries.append((addr, summary))


class InterruptingReporter(RecordingReporter):
    """Raises KeyboardInterrupt after the first reply, like a Ctrl-C."""

    def on_reply(self, result):
        super().on_reply(result)
        raise KeyboardInterrupt


def echo(data: bytes, addr: tuple[str, int]) -> list:
    """Responder answering every query right away."""
    return [(make_reply(data), addr)]


def silent(data: bytes, addr: tuple[str, int]) -> list:
    """Responder that never answers."""
    return []
