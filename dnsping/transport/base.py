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

import selectors
import socket
import time
from abc import ABC, abstractmethod

from dnsping.errors import TimedOut
from dnsping.utils import normalize_addr


class BaseTransport(ABC):
    """A datagram socket that can send data to and receive data from an
    address.

    The socket is kept non-blocking, and the timeouts are enforced with
    selectors. Sending and receiving each get their own selector, so one
    thread can block in `recvfrom` while another calls `sendto`.
    """

    sock: socket.socket

    def __init__(self, sock: socket.socket) -> None:
        """Create a transport around a bound socket.

        Args:
            sock: The bound datagram socket.
        """
        self.sock = sock
        self.sock.setblocking(False)

        self._read_timeout: float | None = None
        self._write_timeout: float | None = None

        self._read_sel = selectors.DefaultSelector()
        self._read_sel.register(self.sock, selectors.EVENT_READ)

        self._write_sel = selectors.DefaultSelector()
        self._write_sel.register(self.sock, selectors.EVENT_WRITE)

    @classmethod
    @abstractmethod
    def bind(cls, *args, **kwargs) -> "BaseTransport":
        """Create and bind a transport."""
        raise NotImplementedError

    def set_read_timeout(self, timeout: float | None) -> None:
        """Set the read timeout.

        Args:
            timeout: Timeout in seconds. None waits forever.

        Raises:
            ValueError: The timeout is negative or zero.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError("Timeout must be positive or None")
        self._read_timeout = timeout

    def set_write_timeout(self, timeout: float | None) -> None:
        """Set the write timeout.

        Args:
            timeout: Timeout in seconds. None waits forever.

        Raises:
            ValueError: The timeout is negative or zero.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError("Timeout must be positive or None")
        self._write_timeout = timeout

    def read_timeout(self) -> float | None:
        return self._read_timeout

    def write_timeout(self) -> float | None:
        return self._write_timeout

    def _wait(self, sel: selectors.BaseSelector, deadline: float | None) -> None:
        """Block until the selector reports the socket as ready.

        Args:
            sel: The read or write selector.
            deadline: Monotonic deadline, or None to wait forever.

        Raises:
            TimedOut: The deadline passed.
        """
        while True:
            if deadline is None:
                remaining = None
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimedOut("Operation timed out")

            if sel.select(timeout=remaining):
                return

    @staticmethod
    def _deadline(timeout: float | None) -> float | None:
        if timeout is None:
            return None
        return time.monotonic() + timeout

    def sendto(self, data: bytes, addr: tuple[str, int]) -> int:
        """Send a datagram to an address.

        Args:
            data: The datagram.
            addr: The destination.

        Raises:
            TimedOut: The socket didn't become writeable in time.
            OSError: The datagram couldn't be sent.

        Returns:
            Number of bytes sent.
        """
        deadline = self._deadline(self._write_timeout)
        while True:
            try:
                return self.sock.sendto(data, addr)
            except BlockingIOError:
                self._wait(self._write_sel, deadline)

    def recvfrom(self, bufsize: int) -> tuple[bytes, tuple[str, int]]:
        """Receive a single datagram.

        Args:
            bufsize: Maximum size of the datagram.

        Raises:
            TimedOut: Nothing arrived before the read timeout.
            OSError: The datagram couldn't be received.

        Returns:
            The datagram, and the (host, port) that sent it.
        """
        deadline = self._deadline(self._read_timeout)
        while True:
            self._wait(self._read_sel, deadline)
            try:
                result = self._recvfrom(bufsize)
            except BlockingIOError:
                # Spurious wakeup
                continue
            if result is None:
                continue

            data, addr = result
            return data, normalize_addr(addr)

    def _recvfrom(self, bufsize: int) -> tuple[bytes, tuple] | None:
        """Read one datagram from the socket. Returns None to skip a datagram
        that isn't worth passing on."""
        return self.sock.recvfrom(bufsize)

    def close(self) -> None:
        """Close the transport."""
        self._read_sel.close()
        self._write_sel.close()
        self.sock.close()

    def __enter__(self) -> "BaseTransport":
        return self

    def __exit__(self, *args) -> None:
        self.close()
