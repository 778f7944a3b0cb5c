"""Forwards rejected inbound connections to a fallback address."""

from __future__ import annotations

import queue
import socket
import threading
from dataclasses import dataclass
from typing import Any, Callable

from . import log
from .errors import TrojanError

_POLL = 0.1
_QUEUE_SIZE = 64
_CHUNK = 32 * 1024

Dial = Callable[[Any], socket.socket]


def _default_dial(addr) -> socket.socket:
    return socket.create_connection(addr)


@dataclass
class Redirection:
    """An inbound socket and the address it should be relayed to."""

    redirect_to: Any = None
    inbound_conn: socket.socket | None = None
    dial: Dial | None = None


def _pipe(src: socket.socket, dst: socket.socket, results: queue.Queue) -> None:
    try:
        while True:
            data = src.recv(_CHUNK)
            if not data:
                break
            dst.sendall(data)
    except OSError as exc:
        results.put(exc)
        return
    results.put(None)


def _close(sock) -> None:
    try:
        sock.close()
    except OSError:
        pass


class Redirector:
    """Relays queued redirections in background threads until the context ends."""

    def __init__(self, ctx) -> None:
        self._ctx = ctx
        self._queue: queue.Queue[Redirection] = queue.Queue(maxsize=_QUEUE_SIZE)
        threading.Thread(target=self._worker, daemon=True).start()

    def redirect(self, redirection: Redirection) -> None:
        """Queue ``redirection``; returns without queueing once the context is done."""
        done = self._ctx.done()
        while not done.is_set():
            try:
                self._queue.put(redirection, timeout=_POLL)
            except queue.Full:
                continue
            log.debug("redirect request")
            return
        log.debug("exiting")

    def _worker(self) -> None:
        done = self._ctx.done()
        while not done.is_set():
            try:
                redirection = self._queue.get(timeout=_POLL)
            except queue.Empty:
                continue
            threading.Thread(target=self._handle, args=(redirection,), daemon=True).start()
        log.debug("shutting down redirector")

    def _handle(self, redirection: Redirection) -> None:
        inbound = redirection.inbound_conn
        if inbound is None:
            log.error("nil inbound conn")
            return
        try:
            if redirection.redirect_to is None:
                log.error("nil redirection addr")
                return
            dial = redirection.dial or _default_dial
            try:
                peer = inbound.getpeername()
            except OSError:
                peer = None
            log.warn("redirecting connection from", peer, "to", redirection.redirect_to)
            try:
                outbound = dial(redirection.redirect_to)
            except OSError as exc:
                log.error(TrojanError("failed to redirect to target address").base(exc))
                return
            try:
                self._relay(inbound, outbound)
            finally:
                _close(outbound)
        finally:
            _close(inbound)

    def _relay(self, inbound: socket.socket, outbound: socket.socket) -> None:
        results: queue.Queue = queue.Queue()
        threading.Thread(target=_pipe, args=(inbound, outbound, results), daemon=True).start()
        threading.Thread(target=_pipe, args=(outbound, inbound, results), daemon=True).start()
        done = self._ctx.done()
        while True:
            try:
                err = results.get(timeout=_POLL)
            except queue.Empty:
                if done.is_set():
                    log.debug("exiting")
                    return
                continue
            if err is not None:
                log.error(TrojanError("failed to redirect").base(err))
            log.info("redirection done")
            return