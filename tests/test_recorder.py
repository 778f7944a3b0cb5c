import queue

import pytest

from trojanproxy import recorder


@pytest.fixture
def uid():
    name = "subscriber-under-test"
    yield name
    recorder.unsubscribe(name)


def test_record_fields_are_filled(uid):
    records = recorder.subscribe(uid, "", "", True)
    recorder.add("hash", ("10.0.0.1", 5000), ("example.com", 443), "tcp", b"data")
    record = records.get_nowait()
    assert record.user_hash == "hash"
    assert record.client_ip == "10.0.0.1"
    assert record.client_port == "5000"
    assert record.target_host == "example.com"
    assert record.target_port == "443"
    assert record.transport == "tcp"
    assert record.payload == b"data"
    assert record.timestamp.isdigit()


def test_string_addresses_are_split(uid):
    records = recorder.subscribe(uid, "", "", False)
    recorder.add("hash", "[::1]:7000", "example.com:80", "udp", b"x")
    record = records.get_nowait()
    assert (record.client_ip, record.client_port) == ("::1", "7000")
    assert (record.target_host, record.target_port) == ("example.com", "80")


def test_payload_is_dropped_when_not_requested(uid):
    records = recorder.subscribe(uid, "", "", False)
    recorder.add("hash", ("10.0.0.1", 1), ("example.com", 443), "tcp", b"data")
    assert records.get_nowait().payload is None


def test_transport_filter(uid):
    records = recorder.subscribe(uid, "udp", "", True)
    recorder.add("hash", ("10.0.0.1", 1), ("example.com", 443), "tcp", b"data")
    with pytest.raises(queue.Empty):
        records.get_nowait()
    recorder.add("hash", ("10.0.0.1", 1), ("example.com", 443), "udp", b"data")
    assert records.get_nowait().transport == "udp"


def test_target_port_filter(uid):
    records = recorder.subscribe(uid, "", "443", True)
    recorder.add("hash", ("10.0.0.1", 1), ("example.com", 80), "tcp", b"")
    recorder.add("hash", ("10.0.0.1", 1), ("example.com", 443), "tcp", b"")
    assert records.get_nowait().target_port == "443"
    with pytest.raises(queue.Empty):
        records.get_nowait()


def test_queue_is_bounded_by_capacity(uid):
    records = recorder.subscribe(uid, "", "", False)
    for _ in range(recorder.CAPACITY + 5):
        recorder.add("hash", ("10.0.0.1", 1), ("example.com", 443), "tcp", None)
    assert records.qsize() == recorder.CAPACITY


def test_unsubscribe_stops_delivery(uid):
    records = recorder.subscribe(uid, "", "", False)
    recorder.unsubscribe(uid)
    recorder.add("hash", ("10.0.0.1", 1), ("example.com", 443), "tcp", None)
    assert records.empty()