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

import functools
import ipaddress
import socket
from typing import Any

# Query identifiers are 16 bits, counters are 64 bits
ID_MASK = 0xFFFF
COUNTER_MASK = 0xFFFFFFFFFFFFFFFF


def wrapping_add(a: int, b: int, mask: int = COUNTER_MASK) -> int:
    """Add two unsigned integers, wrapping around on overflow.

    Args:
        a: The first operand.
        b: The second operand.
        mask: Mask for the width of the integer. Defaults to 64 bits.

    Returns:
        (a + b) modulo the width of the integer.
    """
    return (a + b) & mask


def wrapping_sub(a: int, b: int, mask: int = COUNTER_MASK) -> int:
    """Subtract two unsigned integers, wrapping around on underflow.

    >>> wrapping_sub(3, 1)
    2
    >>> wrapping_sub(1, COUNTER_MASK)
    2

    Args:
        a: The minuend.
        b: The subtrahend.
        mask: Mask for the width of the integer. Defaults to 64 bits.

    Returns:
        (a - b) modulo the width of the integer. Never negative.
    """
    return (a - b) & mask


@functools.cache
def get_ip_family(ip_addr: str) -> socket.AddressFamily:
    """Get the address family of an IP address. This function caches the
    result.

    Args:
        ip_addr: The IP address.

    Raises:
        ValueError: The IP address is invalid.

    Returns:
        socket.AF_INET or socket.AF_INET6.
    """
    if ipaddress.ip_address(ip_addr).version == 6:
        return socket.AF_INET6
    return socket.AF_INET


def normalize_addr(addr: tuple) -> tuple[str, int]:
    """Reduce a socket address to (host, port) with a canonical host.

    IPv6 sockets return (host, port, flowinfo, scope_id), and the same address
    can be spelled several ways ("::1" and "0:0::1").

    Args:
        addr: The socket address.

    Returns:
        The normalized address.
    """
    host, port = addr[0], addr[1]
    try:
        host = ipaddress.ip_address(host).compressed
    except ValueError:
        # Not an IP address (a name returned by a proxy), keep as is
        pass
    return host, int(port)


def parse_socket_addr(text: str, default_port: int | None = None) -> tuple[str, int]:
    """Parse "a.b.c.d:port", "[v6]:port", or a bare IP address.

    Args:
        text: The address to parse.
        default_port: Port to use when none is given. Defaults to None.

    Raises:
        ValueError: The address or the port is invalid, or the port is missing
            and there is no default.

    Returns:
        The parsed (host, port).
    """
    text = text.strip()
    port: str | None = None

    if text.startswith("["):
        # [::1]:53
        host, sep, rest = text[1:].partition("]")
        if not sep:
            raise ValueError(f"Invalid address: {text}")
        if rest:
            if not rest.startswith(":"):
                raise ValueError(f"Invalid address: {text}")
            port = rest[1:]
    elif text.count(":") == 1:
        host, port = text.split(":")
    else:
        # IPv4 without a port, or a bare IPv6 address
        host = text

    # Raises ValueError
    host = ipaddress.ip_address(host).compressed

    if port is None:
        if default_port is None:
            raise ValueError(f"Missing port: {text}")
        return host, default_port

    if not port.isdigit() or not 0 <= int(port) <= 65535:
        raise ValueError(f"Invalid port: {port}")
    return host, int(port)


def flatten_dict(d: dict, parent_key: str = "", sep: str = ".") -> dict[str, Any]:
    """Flatten a nested dictionary into dotted keys.

    >>> flatten_dict({"a": {"b": 1}, "c": 2})
    {'a.b': 1, 'c': 2}

    Args:
        d: The dictionary to flatten.
        parent_key: Prefix of the keys. Defaults to "".
        sep: Separator between keys. Defaults to ".".

    Returns:
        The flattened dictionary.
    """
    items: dict[str, Any] = {}
    for key, value in d.items():
        new_key = f"{parent_key}{sep}{key}" if parent_key else key
        if isinstance(value, dict):
            items.update(flatten_dict(value, new_key, sep=sep))
        else:
            items[new_key] = value
    return items


def merge_defaults(defaults: dict[str, Any], values: dict[str, Any]) -> dict[str, Any]:
    """Merge flattened values over flattened defaults.

    Args:
        defaults: The default values.
        values: Values overriding the defaults. None doesn't override.

    Raises:
        KeyError: A key in values isn't a known key.

    Returns:
        The merged dictionary.
    """
    merged = dict(defaults)
    for key, value in values.items():
        if key not in defaults:
            raise KeyError(f"Unknown configuration key: {key}")
        if value is not None:
            merged[key] = value
    return merged
