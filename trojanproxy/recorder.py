"""Connection records broadcast to live subscribers."""

from __future__ import annotations

import dataclasses
import queue
import threading
import time
from dataclasses import dataclass

from . import log

CAPACITY = 10
"""Number of records each subscriber queue can hold before new ones are dropped."""


@dataclass(frozen=True)
class _Subscription:
    records: queue.Queue
    transport: str
    target_port: str
    include_payload: bool


@dataclass(frozen=True)
class Record:
    """One observed connection or packet."""

    timestamp: str
    user_hash: str
    client_ip: str
    client_port: str
    target_host: str
    target_port: str
    transport: str
    payload: bytes | None = None


_subscribers: dict[str, _Subscription] = {}
_lock = threading.Lock()


def _split_host_port(addr) -> tuple[str, str]:
    if addr is None:
        return "", ""
    if isinstance(addr, tuple):
        return str(addr[0]), str(addr[1])
    text = str(addr)
    if text.startswith("["):
        end = text.find("]")
        if end == -1 or text[end + 1:end + 2] != ":":
            return "", ""
        return text[1:end], text[end + 2:]
    host, sep, port = text.rpartition(":")
    if not sep or ":" in host:
        return "", ""
    return host, port


def add(user_hash: str, client_addr, target_addr, transport: str, payload: bytes | None) -> None:
    """Record a connection and hand it to every matching subscriber."""
    client_ip, client_port = _split_host_port(client_addr)
    target_host, target_port = _split_host_port(target_addr)
    record = Record(
        timestamp=str(int(time.time() * 1000)),
        user_hash=user_hash,
        client_ip=client_ip,
        client_port=client_port,
        target_host=target_host,
        target_port=target_port,
        transport=transport,
        payload=payload,
    )
    _broadcast(record)


def subscribe(uid: str, transport: str, target_port: str, include_payload: bool) -> queue.Queue:
    """Register a subscriber and return the queue its records arrive on.

    Empty ``transport`` or ``target_port`` match everything.
    """
    log.debug("New recorder subscriber", uid)
    subscription = _Subscription(queue.Queue(maxsize=CAPACITY), transport, target_port, include_payload)
    with _lock:
        _subscribers[uid] = subscription
    return subscription.records


def unsubscribe(uid: str) -> None:
    """Remove the subscriber ``uid``, if present."""
    log.debug("Delete recorder subscriber", uid)
    with _lock:
        _subscribers.pop(uid, None)


def _broadcast(record: Record) -> None:
    payload = record.payload
    with _lock:
        subscriptions = list(_subscribers.values())
    for sub in subscriptions:
        if sub.transport and sub.transport != record.transport:
            continue
        if sub.target_port and sub.target_port != record.target_port:
            continue
        if sub.include_payload:
            item = dataclasses.replace(record, payload=bytes(payload) if payload is not None else b"")
        else:
            item = dataclasses.replace(record, payload=None)
        try:
            sub.records.put_nowait(item)
        except queue.Full:
            pass