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
Datagram transports used to reach the DNS server.

Both transports have the same interface, so the engine never needs to know
whether it talks to the server directly or through a SOCKS5 proxy. The
transport is picked once, by `bind_transport`.
"""

import logging
import socket

from dnsping.errors import AddressFamilyMismatch
from dnsping.utils import get_ip_family

from .base import BaseTransport
from .proxy import Socks5Transport
from .udp import SocketTransport

__all__ = [
    "BaseTransport",
    "SocketTransport",
    "Socks5Transport",
    "bind_transport",
    "check_address_family",
    "local_addr_for",
]


def check_address_family(server: str, proxy: str | None) -> None:
    """Make sure the server and the proxy use the same IP version.

    Args:
        server: IP address of the server.
        proxy: IP address of the proxy, or None.

    Raises:
        AddressFamilyMismatch: The IP versions differ.
    """
    if proxy is not None and get_ip_family(server) != get_ip_family(proxy):
        raise AddressFamilyMismatch(server, proxy)


def local_addr_for(server: str) -> tuple[str, int]:
    """Get the wildcard address to bind for a server.

    Args:
        server: IP address of the server.

    Returns:
        ("0.0.0.0", 0) for IPv4 servers, ("::", 0) for IPv6 servers.
    """
    if get_ip_family(server) == socket.AF_INET6:
        return ("::", 0)
    return ("0.0.0.0", 0)


def bind_transport(
    server: tuple[str, int],
    proxy: tuple[str, int] | None = None,
    username: str | None = None,
    password: str | None = None,
    read_timeout: float | None = None,
    write_timeout: float | None = None,
) -> BaseTransport:
    """Validate the addresses and bind the right transport.

    Args:
        server: Address of the server.
        proxy: Address of the SOCKS5 proxy. Defaults to None.
        username: Username for the proxy. Defaults to None.
        password: Password for the proxy. Defaults to None.
        read_timeout: Read timeout in seconds. Defaults to None.
        write_timeout: Write timeout in seconds. Defaults to None.

    Raises:
        AddressFamilyMismatch: The server and the proxy use different IP
            versions.
        ProxyError: The handshake with the proxy failed.
        OSError: The socket couldn't be bound.

    Returns:
        The bound transport.
    """
    check_address_family(server[0], proxy[0] if proxy else None)
    local = local_addr_for(server[0])

    transport: BaseTransport
    if proxy is not None:
        transport = Socks5Transport.bind(proxy, local, username, password)
        logging.info("Relaying through SOCKS5 proxy %s:%s", proxy[0], proxy[1])
    else:
        transport = SocketTransport.bind(local)

    try:
        transport.set_read_timeout(read_timeout)
        transport.set_write_timeout(write_timeout)
    except ValueError:
        transport.close()
        raise
    return transport
