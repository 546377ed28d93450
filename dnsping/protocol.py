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
A small part of RFC1035, enough to ping a DNS server.
================
dnsping.protocol
================

This module implements just enough of the DNS protocol as defined by RFC1035
(https://www.rfc-editor.org/rfc/rfc1035) to build a single question query and
to read the header and question section of whatever comes back. Resource
records after the question section are never decoded, since a ping only needs
the transaction id of the reply.

Headers and Questions
=====================
Both are represented by a dataclass. `id`, `class`, and `type` are stored as
`id_`, `class_`, and `type_` respectively.

>>> DNSHeader(id_=12345, rd=1, qdcount=1).pack()
b'09\\x01\\x00\\x00\\x01\\x00\\x00\\x00\\x00\\x00\\x00'

>>> DNSQuestion(decoded_name="google.com", type_=1, class_=1).pack(
...     encode_name_uncompressed("google.com"))
b'\\x06google\\x03com\\x00\\x00\\x01\\x00\\x01'

Queries
=======

>>> buf = build_query(7, "google.com", RType.A)
>>> parse_reply(buf).id_
7

Anything that can't be built or parsed raises `MalformedMessage`.
"""

import dataclasses
import enum
import functools
import socket
import struct

from .errors import MalformedMessage
from .utils import get_ip_family

HEADER_SIZE = 12

# RFC1035 section 2.3.4
MAX_LABEL_LENGTH = 63
MAX_NAME_LENGTH = 255


class RType(enum.IntEnum):
    """Record types."""

    A = 1
    AAAA = 28


class RClass(enum.IntEnum):
    """Record classes."""

    IN = 1


class DNSDecodeLoopError(MalformedMessage):
    """An exception if a loop is encountered while decoding a DNS name."""

    pass


@functools.lru_cache(maxsize=512)
def encode_name_uncompressed(name: str) -> bytes:
    """Encode a DNS name without using compression.

    Args:
        name: The name to encode. A trailing dot is allowed.

    Raises:
        MalformedMessage: The name can't be encoded.

    Returns:
        The encoded DNS name.
    """
    name = name.rstrip(".")
    if not name:
        # Root
        return b"\x00"

    encoded = []
    for label in name.split("."):
        try:
            raw = label.encode("ascii")
        except UnicodeEncodeError as e:
            raise MalformedMessage(f"Non ASCII label in name: {name!r}") from e

        if not raw:
            raise MalformedMessage(f"Empty label in name: {name!r}")
        if len(raw) > MAX_LABEL_LENGTH:
            raise MalformedMessage(f"Label too long in name: {name!r}")
        encoded.append(bytes([len(raw)]) + raw)

    buf = b"".join(encoded) + b"\x00"
    if len(buf) > MAX_NAME_LENGTH:
        raise MalformedMessage(f"Name too long: {name!r}")
    return buf


def decode_name(buf: bytes, start_idx: int) -> tuple[str, int]:
    """Decode a (possibly compressed) DNS name from a position in a buffer.

    Args:
        buf: The buffer containing the DNS name.
        start_idx: Starting index of the DNS name.

    Raises:
        DNSDecodeLoopError: If a loop is detected.
        MalformedMessage: If the name runs past the end of the buffer.

    Returns:
        Decoded DNS name and the index after the name.
    """
    labels = []
    idx = start_idx

    # Prevent of going into a loop
    visited = set()

    try:
        while True:
            if idx in visited:
                raise DNSDecodeLoopError("Unable to decode domain: loop detected.")
            visited.add(idx)

            # Length of section
            length = buf[idx]
            # Null terminator
            if length == 0:
                idx += 1
                break
            # Pointer
            elif length & 0xC0 == 0xC0:
                pointer = struct.unpack("!H", buf[idx : idx + 2])[0] & 0x3FFF
                # Pointers must point backwards, otherwise they can loop
                if pointer >= idx:
                    raise DNSDecodeLoopError("Unable to decode domain: loop detected.")
                domain, _ = decode_name(buf, pointer)
                if domain:
                    labels.append(domain)

                idx += 2
                break
            else:
                label = buf[idx + 1 : idx + 1 + length]
                if len(label) != length:
                    raise MalformedMessage("Unable to decode domain: truncated label.")
                labels.append(label.decode("ascii"))
                idx += 1 + length
    except (IndexError, struct.error, UnicodeDecodeError) as e:
        raise MalformedMessage(f"Unable to decode domain: {e}") from e

    return ".".join(labels), idx


@dataclasses.dataclass(unsafe_hash=True)
class DNSHeader:
    """Dataclass to store a DNS header."""

    # https://datatracker.ietf.org/doc/html/rfc1035#section-4.1.1
    id_: int = 0
    qr: int = 0
    opcode: int = 0
    aa: int = 0
    tc: int = 0
    rd: int = 0
    ra: int = 0
    z: int = 0
    rcode: int = 0
    qdcount: int = 0
    ancount: int = 0
    nscount: int = 0
    arcount: int = 0

    def pack(self) -> bytes:
        """Pack the DNS header into bytes.

        Raises:
            MalformedMessage: A field doesn't fit.

        Returns:
            The packed DNS header.
        """
        flags = (
            (self.qr << 15)  # QR: 1 bit at bit 15
            | (self.opcode << 11)  # OPCODE: 4 bits at bits 11-14
            | (self.aa << 10)  # AA: 1 bit at bit 10
            | (self.tc << 9)  # TC: 1 bit at bit 9
            | (self.rd << 8)  # RD: 1 bit at bit 8
            | (self.ra << 7)  # RA: 1 bit at bit 7
            | (self.z << 4)  # Z: 3 bits at bits 4-6
            | (self.rcode)  # RCODE: 4 bits at bits 0-3
        )

        try:
            return struct.pack(
                "!HHHHHH",
                self.id_,
                flags,
                self.qdcount,
                self.ancount,
                self.nscount,
                self.arcount,
            )
        except struct.error as e:
            raise MalformedMessage(f"Unable to pack header: {e}") from e

    @classmethod
    def from_buffer(cls, buf: bytes) -> "DNSHeader":
        """Create a DNSHeader instance using data stored in a buffer.

        Args:
            buf: The buffer containing a DNS header.

        Raises:
            MalformedMessage: The buffer is shorter than a header.

        Returns:
            The DNSHeader instance.
        """
        if len(buf) < HEADER_SIZE:
            raise MalformedMessage(
                f"Message too short for a header: {len(buf)} bytes"
            )

        id_, flags, qdcount, ancount, nscount, arcount = struct.unpack(
            "!HHHHHH", buf[:HEADER_SIZE]
        )

        return cls(
            id_=id_,
            qr=(flags >> 15) & 0x1,
            opcode=(flags >> 11) & 0xF,
            aa=(flags >> 10) & 0x1,
            tc=(flags >> 9) & 0x1,
            rd=(flags >> 8) & 0x1,
            ra=(flags >> 7) & 0x1,
            z=(flags >> 4) & 0x7,
            rcode=flags & 0xF,
            qdcount=qdcount,
            ancount=ancount,
            nscount=nscount,
            arcount=arcount,
        )


@dataclasses.dataclass(unsafe_hash=True)
class DNSQuestion:
    """Dataclass to store a DNS question."""

    # Keep QNAME decoded, since it encoded in the message
    decoded_name: str = ""

    # https://datatracker.ietf.org/doc/html/rfc1035#section-4.1.2
    type_: int = RType.A
    class_: int = RClass.IN

    def pack(self, encoded_name: bytes) -> bytes:
        """Pack the DNS question into bytes.

        Args:
            encoded_name: The encoded form of decoded_name.

        Returns:
            The packed DNS question.
        """
        try:
            return encoded_name + struct.pack("!HH", self.type_, self.class_)
        except struct.error as e:
            raise MalformedMessage(f"Unable to pack question: {e}") from e


def pack_all_uncompressed(header: DNSHeader, questions: list[DNSQuestion]) -> bytes:
    """Pack a DNS header and DNS questions, without compression.

    Args:
        header: The DNS header to pack.
        questions: The DNS questions to pack.

    Returns:
        The packed message.
    """
    response = header.pack()
    for question in questions:
        response += question.pack(encode_name_uncompressed(question.decoded_name))
    return response


def unpack_all(buf: bytes) -> tuple[DNSHeader, list[DNSQuestion]]:
    """Unpack the header and the questions of a DNS message.

    Args:
        buf: Buffer containing a DNS message.

    Raises:
        MalformedMessage: The message is truncated or invalid.

    Returns:
        The DNS header and the DNS questions.
    """
    header = DNSHeader.from_buffer(buf)

    # Start after the header
    idx = HEADER_SIZE

    questions = []
    for _ in range(header.qdcount):
        decoded_name, idx = decode_name(buf, idx)

        if len(buf) < idx + 4:
            raise MalformedMessage("Message truncated inside a question")
        type_, class_ = struct.unpack("!HH", buf[idx : idx + 4])
        idx += 4

        questions.append(
            DNSQuestion(decoded_name=decoded_name, type_=type_, class_=class_)
        )

    return header, questions


def rtype_for_address(ip_addr: str) -> RType:
    """Get the record type to query for a server address. IPv4 servers are
    asked for A records, IPv6 servers for AAAA records.

    Args:
        ip_addr: IP address of the server.

    Returns:
        The record type.
    """
    if get_ip_family(ip_addr) == socket.AF_INET6:
        return RType.AAAA
    return RType.A


def build_query(
    id_: int, name: str, rtype: int = RType.A, recursive: bool = False
) -> bytes:
    """Build a query with a single question.

    Args:
        id_: The transaction id (0 to 65535).
        name: The name to ask for.
        rtype: The record type to ask for. Defaults to RType.A.
        recursive: Set the recursion desired flag. Defaults to False.

    Raises:
        MalformedMessage: The query can't be built.

    Returns:
        The packed query.
    """
    if not 0 <= id_ <= 0xFFFF:
        raise MalformedMessage(f"Transaction id out of range: {id_}")

    header = DNSHeader(id_=id_, rd=int(recursive), qdcount=1)
    return pack_all_uncompressed(
        header, [DNSQuestion(decoded_name=name, type_=rtype, class_=RClass.IN)]
    )


def parse_reply(buf: bytes) -> DNSHeader:
    """Parse a reply far enough to trust its transaction id.

    Args:
        buf: The received message.

    Raises:
        MalformedMessage: The message is invalid.

    Returns:
        The header of the reply.
    """
    header, _ = unpack_all(buf)
    return header
