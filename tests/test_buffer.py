import pytest

from trojanproxy.golog.buffer import Buffer


def test_append_data():
    buf = Buffer()
    data = b"Hello"
    buf.append_bytes(data)
    assert bytes(buf) == data


def test_append_single_byte():
    buf = Buffer()
    buf.append_byte(ord("H"))
    assert len(buf) == 1
    assert buf[0] == ord("H")


def test_append_int():
    buf = Buffer()
    repr_ = b"012345"
    buf.append_int(12345, len(repr_))
    assert bytes(buf) == repr_


def test_append_int_without_width():
    buf = Buffer()
    buf.append_int(7, 0)
    assert bytes(buf) == b"7"


def test_append_int_negative_rejected():
    with pytest.raises(ValueError):
        Buffer().append_int(-1, 2)


def test_reset_empties():
    buf = Buffer()
    buf.append_bytes(b"Hello")
    buf.reset()
    assert len(buf) == 0


def test_reset_then_replace():
    buf = Buffer()
    buf.append_bytes(b"Hello")
    buf.reset()
    buf.append_bytes(b"World")
    assert bytes(buf) == b"World"