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

import argparse
import logging
import os
import sys
import threading

from .config import LOG_LEVELS, Config, get_kwargs, kwargs_defaults
from .engine import PingSession, ping
from .errors import DNSPingError, TimedOut
from .report import PrintReporter, Reporter
from .stats import PingResult
from .transport import bind_transport


def make_parser() -> argparse.ArgumentParser:
    """Create the argument parser. Every configuration key is available as
    --<key>, and the common ones also have the short flags of ping."""
    parser = argparse.ArgumentParser(
        prog="dnsping",
        description="Ping a DNS server, optionally through a SOCKS5 proxy",
        fromfile_prefix_chars="@",
    )
    parser.add_argument("server", nargs="?", help="IP address of the DNS server")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file (json or toml)",
    )
    parser.add_argument(
        "--once",
        dest="session.mode",
        action="store_const",
        const="once",
        help="Send a single query and exit",
    )
    parser.add_argument(
        "--sequential",
        dest="session.mode",
        action="store_const",
        const="sequential",
        help="Wait for each reply before sending the next query",
    )

    for key, value in kwargs_defaults.items():
        flags = [*value.get("flags", ()), f"--{key}"]
        if value["type_"] == bool:
            parser.add_argument(
                *flags,
                dest=key,
                help=value["help_"],
                action="store_const",
                const=True,
                default=None,
            )
        else:
            parser.add_argument(
                *flags,
                dest=key,
                help=value["help_"],
                type=value["type_"],
                default=None,
            )

    return parser


def setup_logging(kwargs: dict) -> None:
    """Configure the root logger.

    Args:
        kwargs: The flattened configuration.
    """
    logger = logging.getLogger()

    # Rather than getLevelNamesMapping, because we can support an older version of python
    logger.setLevel(getattr(logging, kwargs["logging.loglevel"].upper()))

    formatter = logging.Formatter(
        fmt=kwargs["logging.format"], datefmt=kwargs["logging.datefmt"]
    )

    if kwargs["logging.path"]:
        handler: logging.Handler = logging.FileHandler(
            os.path.expanduser(kwargs["logging.path"])
        )
    else:
        # stdout is for the ping lines
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def run(config: Config, reporter: Reporter | None = None) -> int:
    """Ping a server according to a configuration.

    Args:
        config: The configuration.
        reporter: Receives the results. Defaults to a PrintReporter.

    Raises:
        ProxyError: The handshake with the proxy failed.
        MalformedMessage: The query can't be built.
        OSError: The transport failed.

    Returns:
        The exit status: 0 if any reply was received, 1 otherwise, and 130
        if the session was interrupted.
    """
    if reporter is None:
        reporter = PrintReporter()

    transport = bind_transport(
        config.server,
        config.proxy,
        username=config.username,
        password=config.password,
        read_timeout=config.timeout,
        write_timeout=config.timeout,
    )

    with transport:
        if config.mode == "once":
            try:
                size, elapsed = ping(
                    transport, config.server, 0, config.host, config.recursive
                )
            except TimedOut:
                reporter.on_timeout(0)
                return 1
            reporter.on_reply(PingResult(size, config.server, 0, elapsed))
            return 0

        session = PingSession(
            transport,
            config.server,
            config.host,
            interval=config.interval,
            count=config.count,
            recursive=config.recursive,
            reporter=reporter,
        )
        if threading.current_thread() is threading.main_thread():
            session.install_signal_handlers()

        if config.mode == "sequential":
            summary = session.run_sequential()
        else:
            summary = session.run()

    if session.interrupted:
        return 130
    return 0 if summary.received else 1


def cli() -> None:
    """The command line interface for dnsping."""
    parser = make_parser()
    args = parser.parse_args()

    if args.server is not None:
        setattr(args, "server.address", args.server)

    try:
        kwargs = get_kwargs(args.config, args)
    except (KeyError, ValueError, OSError) as e:
        parser.error(str(e))

    if kwargs["logging.loglevel"].upper() not in LOG_LEVELS:
        parser.error(f"Invalid log level: {kwargs['logging.loglevel']}")

    setup_logging(kwargs)

    try:
        config = Config.from_kwargs(kwargs)
    except ValueError as e:
        # Includes AddressFamilyMismatch
        parser.error(str(e))

    logging.debug("Configuration: %s", config)

    try:
        status = run(config)
    except KeyboardInterrupt:
        logging.info("Received KeyboardInterrupt")
        status = 130
    except (DNSPingError, OSError, EOFError) as e:
        logging.error("%s", e, exc_info=logging.getLogger().isEnabledFor(logging.DEBUG))
        status = 2

    sys.exit(status)
