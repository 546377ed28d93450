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

import socket

import pytest

from dnsping import cli as cli_module
from dnsping.cli import cli, make_parser, run
from dnsping.config import Config
from dnsping.engine import PingSession
from tests.fakes import InterruptingReporter


@pytest.fixture(autouse=True)
def no_side_effects(monkeypatch):
    # Leave the root logger and the signal handlers of pytest alone
    monkeypatch.setattr(cli_module, "setup_logging", lambda kwargs: None)
    monkeypatch.setattr(PingSession, "install_signal_handlers", lambda self: None)


def silent_server():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    return sock


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr("sys.argv", ["dnsping", *argv])
    with pytest.raises(SystemExit) as e:
        cli()
    return e.value.code


def test_parser_short_flags():
    args = make_parser().parse_args(
        ["1.1.1.1", "-c", "3", "-I", "10", "-w", "50", "-r", "-s", "127.0.0.1:1080"]
    )
    assert args.server == "1.1.1.1"
    assert getattr(args, "session.count") == 3
    assert getattr(args, "session.interval") == 10
    assert getattr(args, "session.timeout") == 50
    assert getattr(args, "query.recursive") is True
    assert getattr(args, "proxy.address") == "127.0.0.1:1080"
    assert getattr(args, "session.mode") is None


def test_parser_modes():
    parser = make_parser()
    assert getattr(parser.parse_args(["--once"]), "session.mode") == "once"
    assert getattr(parser.parse_args(["--sequential"]), "session.mode") == "sequential"


@pytest.mark.parametrize(
    "flag", ["-r", "--recursive", "-i", "--iterate", "--query.recursive"]
)
def test_parser_recursive_aliases(flag):
    assert getattr(make_parser().parse_args([flag]), "query.recursive") is True


def test_run(echo_server, reporter):
    config = Config(server=echo_server.addr, count=2, interval=0.05, timeout=0.5)
    assert run(config, reporter) == 0
    assert len(reporter.replies) == 2


def test_run_once(echo_server, reporter):
    config = Config(server=echo_server.addr, timeout=0.5, mode="once")
    assert run(config, reporter) == 0
    assert [r.id_ for r in reporter.replies] == [0]


def test_run_sequential_no_replies(reporter):
    with silent_server() as server:
        config = Config(
            server=server.getsockname(),
            count=2,
            interval=0.01,
            timeout=0.05,
            mode="sequential",
        )
        assert run(config, reporter) == 1
    assert reporter.timeouts == [0, 1]


def test_run_interrupted(echo_server):
    reporter = InterruptingReporter()
    config = Config(
        server=echo_server.addr, count=0, interval=0.01, timeout=0.5, mode="sequential"
    )
    assert run(config, reporter) == 130
    assert len(reporter.summaries) == 1


def test_cli(monkeypatch, capsys, echo_server):
    host, port = echo_server.addr
    code = run_cli(monkeypatch, host, "-p", str(port), "-c", "2", "-I", "50")

    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == f"PING {host}:{port} for www.google.com 32 bytes of data."
    assert lines[-2] == "2 packets transmitted, 2 received, 0.00% packet loss"
    assert lines[-1].startswith("rtt min/avg/max = ")


def test_cli_once_timeout(monkeypatch, capsys):
    with silent_server() as server:
        host, port = server.getsockname()
        code = run_cli(monkeypatch, f"{host}:{port}", "--once", "-w", "20")

    assert code == 1
    assert capsys.readouterr().out == "Request timeout for id=0\n"


def test_cli_proxy_error(monkeypatch):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        proxy_port = sock.getsockname()[1]

    code = run_cli(monkeypatch, "127.0.0.1", "-s", f"127.0.0.1:{proxy_port}")
    assert code == 2


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["dns.google"],
        ["::1", "-s", "127.0.0.1:1080"],
        ["127.0.0.1", "-c", "-1"],
        ["127.0.0.1", "--logging.loglevel", "LOUD"],
    ],
)
def test_cli_usage_errors(monkeypatch, argv):
    # argparse exits with 2 on usage errors
    assert run_cli(monkeypatch, *argv) == 2
