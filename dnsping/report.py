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

import sys
from typing import TextIO

from .stats import PingResult, Summary


def format_addr(addr: tuple[str, int]) -> str:
    """Format an address as "a.b.c.d:port" or "[v6]:port"."""
    host, port = addr
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class Reporter:
    """Receives everything a session has to say. The default implementation
    ignores all of it."""

    def on_start(self, addr: tuple[str, int], host: str, size: int) -> None:
        pass

    def on_reply(self, result: PingResult) -> None:
        pass

    def on_timeout(self, id_: int) -> None:
        pass

    def on_error(self, error: BaseException) -> None:
        pass

    def on_summary(self, addr: tuple[str, int], summary: Summary) -> None:
        pass


class PrintReporter(Reporter):
    """Print the session the same way ping does."""

    def __init__(self, file: TextIO | None = None) -> None:
        self.file = file if file is not None else sys.stdout

    def _print(self, line: str) -> None:
        print(line, file=self.file, flush=True)

    def on_start(self, addr: tuple[str, int], host: str, size: int) -> None:
        self._print(f"PING {format_addr(addr)} for {host} {size} bytes of data.")

    def on_reply(self, result: PingResult) -> None:
        line = (
            f"{result.size} bytes from {format_addr(result.addr)}: "
            f"id={result.id_} time={result.elapsed * 1000:.2f} ms"
        )
        if result.lost:
            line += f" lost={result.lost}"
        self._print(line)

    def on_timeout(self, id_: int) -> None:
        self._print(f"Request timeout for id={id_}")

    def on_summary(self, addr: tuple[str, int], summary: Summary) -> None:
        self._print(f"--- {format_addr(addr)} ping statistics ---")
        self._print(
            f"{summary.sent} packets transmitted, {summary.received} received, "
            f"{summary.loss_percent:.2f}% packet loss"
        )
        if summary.received:
            self._print(
                f"rtt min/avg/max = {summary.min * 1000:.3f}/"
                f"{summary.avg * 1000:.3f}/{summary.max * 1000:.3f} ms"
            )
