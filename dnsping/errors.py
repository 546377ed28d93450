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
Exceptions raised by dnsping.

Everything derives from `DNSPingError`, so callers can catch the whole family
at once. `TimedOut` is also a `TimeoutError`, and therefore an `OSError`, so
code handling transport failures must check for it first.
"""


class DNSPingError(Exception):
    """Base class for all dnsping errors."""

    pass


class TimedOut(DNSPingError, TimeoutError):
    """No datagram arrived before the read timeout elapsed (or a send could
    not complete before the write timeout)."""

    pass


class MalformedMessage(DNSPingError, ValueError):
    """A DNS message could not be built or parsed."""

    pass


class ProxyError(DNSPingError):
    """The SOCKS5 relay could not be set up."""

    pass


class AddressFamilyMismatch(DNSPingError, ValueError):
    """The server and the proxy use different IP versions."""

    def __init__(self, server: str, proxy: str) -> None:
        super().__init__(
            f"The IP protocol numbers of the server {server} and the proxy {proxy} do not match"
        )
        self.server = server
        self.proxy = proxy
