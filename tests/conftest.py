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

import pytest

from tests.fakes import RecordingReporter
from tests.servers.dns_echo import DNSEchoServer
from tests.servers.socks5 import Socks5Server


@pytest.fixture
def reporter():
    return RecordingReporter()


# Execution before yielding is the startup. Execution after is the teardown
@pytest.fixture(scope="session")
def echo_server():
    server = DNSEchoServer().start()
    yield server
    server.shutdown()


@pytest.fixture(scope="session")
def socks5_server():
    server = Socks5Server().start()
    yield server
    server.shutdown()


@pytest.fixture(scope="session")
def socks5_auth_server():
    server = Socks5Server(username="user", password="secret").start()
    yield server
    server.shutdown()


@pytest.fixture(scope="session")
def socks5_junk_server():
    server = Socks5Server(
        junk=[
            # Too short for a header
            b"\x00\x00",
            # A fragment
            b"\x00\x00\x01\x01\x7f\x00\x00\x01\x00\x35payload",
            # Unknown address type
            b"\x00\x00\x00\x09payload",
            # Truncated address
            b"\x00\x00\x00\x01\x7f\x00",
        ]
    ).start()
    yield server
    server.shutdown()
