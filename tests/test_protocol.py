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

import struct

import pytest

from dnsping.errors import MalformedMessage
from dnsping.protocol import (HEADER_SIZE, DNSDecodeLoopError, DNSHeader,
                              DNSQuestion, RType, build_query, decode_name,
                              encode_name_uncompressed, parse_reply,
                              rtype_for_address, unpack_all)


def test_header_pack():
    header = DNSHeader(id_=12345, qr=1, rd=1, ra=1, rcode=3, qdcount=1)
    assert header.pack() == b"09\x81\x83\x00\x01\x00\x00\x00\x00\x00\x00"
    assert DNSHeader.from_buffer(header.pack()) == header


def test_header_too_short():
    with pytest.raises(MalformedMessage):
        DNSHeader.from_buffer(b"\x00" * (HEADER_SIZE - 1))


def test_header_field_overflow():
    with pytest.raises(MalformedMessage):
        DNSHeader(id_=0x10000).pack()


def test_encode_name():
    assert encode_name_uncompressed("google.com") == b"\x06google\x03com\x00"
    assert encode_name_uncompressed("google.com.") == b"\x06google\x03com\x00"
    assert encode_name_uncompressed("") == b"\x00"
    assert encode_name_uncompressed(".") == b"\x00"


@pytest.mark.parametrize(
    "name",
    [
        "a..b",
        "a" * 64 + ".com",
        ".".join(["a" * 63] * 4),
        "bücher.de",
    ],
)
def test_encode_name_invalid(name):
    with pytest.raises(MalformedMessage):
        encode_name_uncompressed(name)


def test_decode_name_pointer():
    buf = b"\x06google\x03com\x00" + b"\x03www\xc0\x00"
    assert decode_name(buf, 0) == ("google.com", 12)
    assert decode_name(buf, 12) == ("www.google.com", len(buf))


def test_decode_name_loop():
    # A pointer to itself
    with pytest.raises(DNSDecodeLoopError):
        decode_name(b"\xc0\x00", 0)
    # A forward pointer
    with pytest.raises(DNSDecodeLoopError):
        decode_name(b"\xc0\x02\x01a\x00", 0)


def test_decode_name_truncated():
    with pytest.raises(MalformedMessage):
        decode_name(b"\x06goo", 0)
    with pytest.raises(MalformedMessage):
        decode_name(b"\x03com", 0)


def test_build_query():
    buf = build_query(7, "example.com", RType.A)
    header, questions = unpack_all(buf)

    assert header == DNSHeader(id_=7, qdcount=1)
    assert questions == [DNSQuestion(decoded_name="example.com", type_=1, class_=1)]
    assert len(buf) == HEADER_SIZE + 13 + 4


def test_build_query_recursive():
    header = parse_reply(build_query(1, "example.com", recursive=True))
    assert header.rd == 1
    assert header.qr == 0


@pytest.mark.parametrize("id_", [-1, 0x10000])
def test_build_query_id_out_of_range(id_):
    with pytest.raises(MalformedMessage):
        build_query(id_, "example.com")


def test_build_query_bad_name():
    with pytest.raises(MalformedMessage):
        build_query(1, "a" * 64)


def test_parse_reply():
    reply = DNSHeader(id_=65535, qr=1, qdcount=1).pack()
    reply += encode_name_uncompressed("example.com") + struct.pack("!HH", 1, 1)
    # Answers are never decoded
    reply += b"\xff" * 20

    assert parse_reply(reply).id_ == 65535


def test_parse_reply_truncated_question():
    reply = DNSHeader(id_=1, qr=1, qdcount=1).pack() + b"\x07example"
    with pytest.raises(MalformedMessage):
        parse_reply(reply)

    reply = DNSHeader(id_=1, qr=1, qdcount=1).pack() + b"\x00\x00"
    with pytest.raises(MalformedMessage):
        parse_reply(reply)


def test_rtype_for_address():
    assert rtype_for_address("1.1.1.1") == RType.A
    assert rtype_for_address("2606:4700::1111") == RType.AAAA
