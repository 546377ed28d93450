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
Configuration for dnsping.

Settings come from three places, each overriding the one before: the
defaults in `kwargs_defaults`, a configuration file (toml or json), and the
command line. Keys are flattened with dots, so

    [session]
    count = 5

in a toml file, `{"session": {"count": 5}}` in a json file, and
`--session.count 5` (or `-c 5`) on the command line all set `session.count`.
"""

import dataclasses
import json
import sys
from typing import Any

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

from .transport import check_address_family
from .utils import flatten_dict, merge_defaults, parse_socket_addr

DEFAULT_PORT = 53


class _IFS:
    def __init__(self, **kwargs):
        self.d = kwargs

    def __getitem__(self, x):
        return self.d[x]

    def get(self, x, default=None):
        return self.d.get(x, default)


kwargs_defaults = {
    "logging": {
        "loglevel": _IFS(
            help_="Log level to use. One of {CRITICAL,ERROR,WARNING,INFO,DEBUG}",
            type_=str,
            default="WARNING",
        ),
        "format": _IFS(
            help_="Format of log messages",
            type_=str,
            default="%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s",
        ),
        "datefmt": _IFS(
            help_="Format of the date in log messages",
            type_=str,
            default="%Y-%m-%d %H:%M:%S",
        ),
        "path": _IFS(
            help_="Write logs to this file instead of stderr",
            type_=str,
            default=None,
        ),
    },
    "server": {
        "address": _IFS(help_="IP address of the DNS server", type_=str, default=None),
        "port": _IFS(
            help_="Port of the DNS server",
            type_=int,
            default=DEFAULT_PORT,
            flags=("-p",),
        ),
    },
    "query": {
        "host": _IFS(
            help_="Name to ask for",
            type_=str,
            default="www.google.com",
            flags=("-H",),
        ),
        "recursive": _IFS(
            help_="Set the recursion desired flag on queries",
            type_=bool,
            default=False,
            flags=("-r", "--recursive", "-i", "--iterate"),
        ),
    },
    "proxy": {
        "address": _IFS(
            help_="Address of a SOCKS5 proxy (a.b.c.d:port or [v6]:port)",
            type_=str,
            default=None,
            flags=("-s",),
        ),
        "username": _IFS(help_="Username for the SOCKS5 proxy", type_=str, default=None),
        "password": _IFS(help_="Password for the SOCKS5 proxy", type_=str, default=None),
    },
    "session": {
        "count": _IFS(
            help_="Number of queries to send, 0 for no limit",
            type_=int,
            default=0,
            flags=("-c",),
        ),
        "interval": _IFS(
            help_="Milliseconds to wait between sending each query",
            type_=int,
            default=1000,
            flags=("-I",),
        ),
        "timeout": _IFS(
            help_="Milliseconds to wait for each reply, 0 for no timeout",
            type_=int,
            default=1000,
            flags=("-w",),
        ),
        "mode": _IFS(
            help_="One of {concurrent,sequential,once}",
            type_=str,
            default="concurrent",
        ),
    },
}

kwargs_defaults = flatten_dict(kwargs_defaults)

MODES = ("concurrent", "sequential", "once")
LOG_LEVELS = ("CRITICAL", "FATAL", "ERROR", "WARN", "WARNING", "INFO", "DEBUG", "NOTSET")


def load_config_file(path: str) -> dict[str, Any]:
    """Load a configuration file.

    Args:
        path: Path to a .toml or .json file.

    Raises:
        ValueError: Unknown file format.

    Returns:
        The flattened configuration.
    """
    if path.endswith(".json"):
        with open(path) as f:
            return flatten_dict(json.load(f))
    elif path.endswith(".toml"):
        with open(path, "rb") as f:
            return flatten_dict(tomllib.load(f))
    raise ValueError("Unable to load configuration: unknown file format")


def get_kwargs(config_path: str | None = None, args: Any = None) -> dict[str, Any]:
    """Merge the defaults, a configuration file and the command line.

    Args:
        config_path: Path to a configuration file. Defaults to None.
        args: Parsed command line arguments, whose attribute names are the
            flattened keys. Defaults to None.

    Raises:
        KeyError: An unknown key was given.
        ValueError: The configuration file can't be loaded.

    Returns:
        The flattened configuration.
    """
    kwargs = {k: v["default"] for k, v in kwargs_defaults.items()}

    if config_path is not None:
        kwargs = merge_defaults(kwargs, load_config_file(config_path))

    if args is not None:
        kwargs = merge_defaults(
            kwargs,
            {k: v for k, v in vars(args).items() if k in kwargs_defaults},
        )

    return kwargs


def _ms_to_seconds(value: int, name: str, allow_zero: bool) -> float:
    value = int(value)
    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"Invalid {name}: {value}")
    return value / 1000


@dataclasses.dataclass(frozen=True)
class Config:
    """Validated configuration of a session."""

    server: tuple[str, int]
    host: str = "www.google.com"
    recursive: bool = False
    proxy: tuple[str, int] | None = None
    username: str | None = None
    password: str | None = None
    count: int = 0
    # Seconds
    interval: float = 1.0
    # Seconds, None for no timeout
    timeout: float | None = 1.0
    mode: str = "concurrent"

    @classmethod
    def from_kwargs(cls, kwargs: dict[str, Any]) -> "Config":
        """Create a Config from a flattened configuration.

        Args:
            kwargs: The output of get_kwargs.

        Raises:
            ValueError: A value is invalid.
            AddressFamilyMismatch: The server and the proxy use different IP
                versions.

        Returns:
            The configuration.
        """
        if kwargs["server.address"] is None:
            raise ValueError("No server address given")

        port = int(kwargs["server.port"])
        if not 0 < port <= 65535:
            raise ValueError(f"Invalid port: {port}")
        server = parse_socket_addr(kwargs["server.address"], default_port=port)

        proxy = None
        if kwargs["proxy.address"] is not None:
            proxy = parse_socket_addr(kwargs["proxy.address"])
        check_address_family(server[0], proxy[0] if proxy else None)

        count = int(kwargs["session.count"])
        if count < 0:
            raise ValueError(f"Invalid count: {count}")

        timeout = _ms_to_seconds(kwargs["session.timeout"], "timeout", allow_zero=True)

        mode = kwargs["session.mode"].lower()
        if mode not in MODES:
            raise ValueError(f"Invalid mode: {mode}")

        return cls(
            server=server,
            host=kwargs["query.host"],
            recursive=bool(kwargs["query.recursive"]),
            proxy=proxy,
            username=kwargs["proxy.username"],
            password=kwargs["proxy.password"],
            count=count,
            interval=_ms_to_seconds(
                kwargs["session.interval"], "interval", allow_zero=True
            ),
            timeout=timeout or None,
            mode=mode,
        )
