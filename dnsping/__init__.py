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
Ping a DNS server.

dnsping measures the round trip time and the packet loss to a DNS server by
sending it queries at a fixed interval and matching every reply to the query
that caused it, either directly over UDP or through a SOCKS5 proxy.

>>> from dnsping import PingSession, bind_transport
>>> transport = bind_transport(("1.1.1.1", 53), read_timeout=1.0)
>>> PingSession(transport, ("1.1.1.1", 53), "example.com", count=3).run()
Summary(sent=3, received=3, ...)
"""

from .engine import PingSession, ping
from .errors import (AddressFamilyMismatch, DNSPingError, MalformedMessage,
                     ProxyError, TimedOut)
from .report import PrintReporter, Reporter
from .stats import PingResult, Statistics, Summary
from .transport import (BaseTransport, SocketTransport, Socks5Transport,
                        bind_transport)

__version__ = "0.1.0"

__all__ = [
    "AddressFamilyMismatch",
    "BaseTransport",
    "DNSPingError",
    "MalformedMessage",
    "PrintReporter",
    "PingResult",
    "PingSession",
    "ProxyError",
    "Reporter",
    "SocketTransport",
    "Socks5Transport",
    "Statistics",
    "Summary",
    "TimedOut",
    "bind_transport",
    "ping",
]
