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

import io
import logging
import socket

import socks

from dnsping.errors import MalformedMessage, ProxyError
from dnsping.utils import get_ip_family

from .base import BaseTransport

UDP_ASSOCIATE = b"\x03"


class _UDPRelaySocket(socks.socksocket):
    """A PySocks datagram socket that works for both IP versions.

    PySocks always opens the control connection with an IPv4 socket, and
    expects a (host, port) local address. The association is set up here
    instead, using the handshake of PySocks. Relayed datagrams that can't be
    unwrapped raise MalformedMessage rather than whatever PySocks trips on.
    """

    def bind(self, addr: tuple[str, int]) -> None:
        # Bind the datagram socket itself, skipping the PySocks bind
        super(socks.socksocket, self).bind(addr)
        local = self.getsockname()[:2]

        proxy = self._proxy_addr()
        self._proxyconn = socket.socket(get_ip_family(proxy[0]), socket.SOCK_STREAM)
        self._proxyconn.settimeout(self._timeout)
        self._proxyconn.connect(proxy)

        _, relay = self._SOCKS5_request(self._proxyconn, UDP_ASSOCIATE, local)
        # Datagrams go to the relay port on the proxy host
        super(socks.socksocket, self).connect((proxy[0], relay[1]))
        self.proxy_sockname = local

    def recvfrom(self, bufsize: int, flags: int = 0) -> tuple[bytes, tuple[str, int]]:
        """Receive a datagram from the relay, and strip the SOCKS5 UDP header.

        Raises:
            MalformedMessage: The relay sent something that isn't a SOCKS5 UDP
                datagram.
            OSError: The datagram couldn't be received.
        """
        buf = io.BytesIO(super(socks.socksocket, self).recv(bufsize + 1024, flags))

        # RSV (2 bytes) and FRAG
        header = buf.read(3)
        if len(header) < 3:
            raise MalformedMessage("Relayed datagram too short")
        if header[2]:
            raise MalformedMessage("Relayed datagram is a fragment")

        try:
            host, port = self._read_SOCKS5_address(buf)
        except socks.GeneralProxyError as e:
            raise MalformedMessage(f"Relayed datagram has an invalid address: {e}") from e

        if isinstance(host, bytes):
            host = host.decode("ascii", "replace")
        return buf.read(bufsize), (host, port)


class Socks5Transport(BaseTransport):
    """Transport relaying UDP datagrams through a SOCKS5 proxy.

    The TCP connection to the proxy stays open for as long as the UDP
    association lives, and every datagram is wrapped in the SOCKS5 UDP header.
    To the rest of dnsping this looks exactly like a UDP socket: `recvfrom`
    returns the address of the server that answered, not of the relay.
    Datagrams from the relay that can't be unwrapped are skipped.
    """

    @classmethod
    def bind(
        cls,
        proxy: tuple[str, int],
        addr: tuple[str, int],
        username: str | None = None,
        password: str | None = None,
    ) -> "Socks5Transport":
        """Associate a UDP relay with a SOCKS5 proxy.

        Args:
            proxy: Address of the proxy.
            addr: The local address to bind.
            username: Username for the proxy. Defaults to None.
            password: Password for the proxy. Defaults to None.

        Raises:
            ProxyError: The handshake with the proxy failed.

        Returns:
            The transport.
        """
        sock = _UDPRelaySocket(get_ip_family(addr[0]), socket.SOCK_DGRAM)
        sock.set_proxy(
            socks.SOCKS5,
            proxy[0],
            proxy[1],
            username=username,
            password=password,
        )

        try:
            sock.bind(addr)
        except (socks.ProxyError, OSError, ValueError) as e:
            # Closing the socket closes the control connection too
            sock.close()
            raise ProxyError(
                f"Unable to associate with SOCKS5 proxy {proxy[0]}:{proxy[1]}: {e}"
            ) from e

        logging.debug("UDP association with SOCKS5 proxy %s:%s", proxy[0], proxy[1])
        return cls(sock)

    def _recvfrom(self, bufsize: int) -> tuple[bytes, tuple] | None:
        try:
            return self.sock.recvfrom(bufsize)
        except MalformedMessage as e:
            logging.debug("Ignoring datagram from the relay: %s", e)
            return None
