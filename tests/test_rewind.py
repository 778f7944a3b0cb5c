import io
import os
import socket

import pytest

from trojanproxy.rewind import RewindConn, RewindReader, StickyWriter


def test_buffered_reader():
    payload = os.urandom(1024)
    reader = RewindReader(io.BytesIO(payload))
    reader.set_buffer_size(2048)
    buf1 = reader.read(512)
    reader.rewind()
    buf2 = reader.read(512)
    assert buf1 == buf2
    buf3 = reader.read(512)
    assert buf3 == payload[512:]
    reader.rewind()
    buf4 = reader.read(1024)
    assert buf4 == payload


def test_rewind_without_buffer_fails():
    reader = RewindReader(io.BytesIO(b"abc"))
    with pytest.raises(RuntimeError, match="no buffer"):
        reader.rewind()


def test_disable_when_not_buffering_fails():
    reader = RewindReader(io.BytesIO(b"abc"))
    with pytest.raises(RuntimeError, match="reader is disabled"):
        reader.set_buffer_size(0)


def test_double_enable_fails():
    reader = RewindReader(io.BytesIO(b"abc"))
    reader.set_buffer_size(8)
    with pytest.raises(RuntimeError, match="reader is buffering"):
        reader.set_buffer_size(8)


def test_stop_buffering_limits_replay():
    reader = RewindReader(io.BytesIO(b"abcdef"))
    reader.set_buffer_size(8)
    assert reader.read(2) == b"ab"
    reader.stop_buffering()
    assert reader.read(2) == b"cd"
    reader.rewind()
    assert reader.read(10) == b"ab"
    assert reader.read(10) == b"ef"


def test_read_byte_and_eof():
    reader = RewindReader(io.BytesIO(b"Z"))
    assert reader.read_byte() == ord("Z")
    with pytest.raises(EOFError):
        reader.read_byte()


@pytest.mark.parametrize("n", [5, 128, 256, 300])
def test_discard(n):
    payload = bytes(range(256)) * 2
    reader = RewindReader(io.BytesIO(payload))
    assert reader.discard(n) == n
    assert reader.read(4) == payload[n:n + 4]


def test_discard_stops_at_eof():
    reader = RewindReader(io.BytesIO(b"abc"))
    assert reader.discard(200) == 3


def test_rewind_conn_round_trip():
    left, right = socket.socketpair()
    conn = RewindConn(left)
    try:
        right.sendall(b"hello")
        conn.set_buffer_size(16)
        first = conn.read(5)
        conn.rewind()
        assert conn.read(5) == first == b"hello"
        assert conn.write(b"pong") == 4
        assert right.recv(4) == b"pong"
    finally:
        conn.close()
        right.close()


def test_sticky_writer_coalesces():
    raw = io.BytesIO()
    writer = StickyWriter(raw, max_buffered=2)
    assert writer.write(b"a") == 1
    assert raw.getvalue() == b""
    assert writer.write(b"b") == 1
    assert raw.getvalue() == b"ab"
    writer.write(b"c")
    assert raw.getvalue() == b"abc"
    assert writer.max_buffered == 0