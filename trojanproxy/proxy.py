"""Proxy core: relays connections and packets from tunnel servers to a tunnel client."""

from __future__ import annotations

import queue
import random
import threading
from dataclasses import dataclass, field
from typing import Callable

from . import config, log
from .errors import TrojanError

NAME = "PROXY"

_POLL = 0.1


@dataclass
class ProxyConfig:
    """Settings common to every proxy type."""

    run_type: str = field(default="", metadata={"json": "run_type", "yaml": "run-type"})
    log_level: int = field(default=1, metadata={"json": "log_level", "yaml": "log-level"})
    log_file: str = field(default="", metadata={"json": "log_file", "yaml": "log-file"})
    relay_buffer_size: int = field(
        default=4 * 1024, metadata={"json": "relay_buffer_size", "yaml": "relay_buffer_size"}
    )


config.register_config_creator(NAME, ProxyConfig)


class Proxy:
    """Accepts from every source and relays each stream or packet flow through the sink.

    Sources provide ``accept_conn()``, ``accept_packet()`` and ``close()``; the sink
    provides ``dial_conn(address)``, ``dial_packet()`` and ``close()``. Stream
    connections have ``metadata.address``, ``read(size)``, ``write(data)`` and
    ``close()``; packet connections have ``read_with_metadata(size)``,
    ``write_with_metadata(data, metadata)`` and ``close()``.
    """

    def __init__(self, ctx, sources, sink) -> None:
        cfg = config.from_context(ctx, NAME)
        if not isinstance(cfg, ProxyConfig):
            raise TrojanError("proxy config is missing from context")
        self._ctx = ctx
        self._sources = list(sources)
        self._sink = sink
        self._relay_buffer_size = cfg.relay_buffer_size

    def run(self) -> None:
        """Start relaying and block until the proxy's context is cancelled."""
        self._start_loops(self._accept_conn_loop)
        self._start_loops(self._accept_packet_loop)
        self._ctx.done().wait()

    def close(self) -> None:
        """Cancel the context and close the sink and every source."""
        self._ctx.cancel()
        self._sink.close()
        for source in self._sources:
            source.close()

    def _start_loops(self, target) -> None:
        for source in self._sources:
            threading.Thread(target=target, args=(source,), daemon=True).start()

    def _spawn(self, target, *args) -> None:
        threading.Thread(target=target, args=args, daemon=True).start()

    def _wait_first(self, results: queue.Queue, kind: str) -> bool:
        done = self._ctx.done()
        while True:
            try:
                err = results.get(timeout=_POLL)
            except queue.Empty:
                if done.is_set():
                    log.debug(f"shutting down {kind} relay")
                    return False
                continue
            if err is not None:
                log.debug(err)
            return True

    def _accept_conn_loop(self, source) -> None:
        done = self._ctx.done()
        while True:
            try:
                inbound = source.accept_conn()
            except Exception as exc:
                if done.is_set():
                    log.debug("exiting")
                    return
                log.debug(TrojanError("failed to accept connection").base(exc))
                continue
            self._spawn(self._relay_conn, inbound)

    def _copy_conn(self, dst, src, results: queue.Queue) -> None:
        try:
            while True:
                data = src.read(self._relay_buffer_size)
                if not data:
                    break
                dst.write(data)
        except Exception as exc:
            results.put(exc)
            return
        results.put(None)

    def _relay_conn(self, inbound) -> None:
        try:
            try:
                outbound = self._sink.dial_conn(inbound.metadata.address)
            except Exception as exc:
                log.error(TrojanError("proxy failed to dial connection").base(exc))
                return
            try:
                results: queue.Queue = queue.Queue()
                self._spawn(self._copy_conn, inbound, outbound, results)
                self._spawn(self._copy_conn, outbound, inbound, results)
                if self._wait_first(results, "conn"):
                    log.debug("conn relay ends")
            finally:
                outbound.close()
        finally:
            inbound.close()

    def _accept_packet_loop(self, source) -> None:
        done = self._ctx.done()
        while True:
            try:
                inbound = source.accept_packet()
            except Exception as exc:
                if done.is_set():
                    log.debug("exiting")
                    return
                log.debug(TrojanError("failed to accept packet").base(exc))
                continue
            self._spawn(self._relay_packet, inbound)

    def _copy_packet(self, src, dst, results: queue.Queue) -> None:
        try:
            while True:
                data, metadata = src.read_with_metadata(self._relay_buffer_size)
                if not data:
                    break
                dst.write_with_metadata(data, metadata)
        except Exception as exc:
            results.put(exc)
            return
        results.put(None)

    def _relay_packet(self, inbound) -> None:
        try:
            try:
                outbound = self._sink.dial_packet()
            except Exception as exc:
                log.debug(TrojanError("proxy failed to dial packet").base(exc))
                return
            try:
                results: queue.Queue = queue.Queue()
                self._spawn(self._copy_packet, inbound, outbound, results)
                self._spawn(self._copy_packet, outbound, inbound, results)
                self._wait_first(results, "packet")
                log.debug("packet relay ends")
            finally:
                outbound.close()
        finally:
            inbound.close()


Creator = Callable[[object], Proxy]

_creators: dict[str, Creator] = {}


def register_proxy_creator(name: str, creator: Creator) -> None:
    """Register the factory for proxies whose run type is ``name``."""
    _creators[name] = creator


def new_proxy_from_config_data(data, is_json: bool):
    """Parse config data, apply logging settings and build the proxy it names."""
    ctx = config.Context().with_value(NAME + "_ID", random.getrandbits(63))
    if is_json:
        ctx = config.with_json_config(ctx, data)
    else:
        ctx = config.with_yaml_config(ctx, data)
    cfg: ProxyConfig = config.from_context(ctx, NAME)
    create = _creators.get(cfg.run_type.upper())
    if create is None:
        raise TrojanError("unknown proxy type: " + cfg.run_type)
    log.set_log_level(cfg.log_level)
    if cfg.log_file:
        try:
            handle = open(cfg.log_file, "a", encoding="utf-8")
        except OSError as exc:
            raise TrojanError("failed to open log file").base(exc) from exc
        log.set_output(handle)
    return create(ctx)