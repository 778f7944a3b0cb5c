"""Easy mode: start a client or server from a few command-line values."""

from __future__ import annotations

import json
import re

from . import log, proxy
from .errors import TrojanError
from .option import OptionHandler

DEFAULT_CLIENT_LOCAL = "127.0.0.1:1080"
DEFAULT_SERVER_REMOTE = "127.0.0.1:80"
DEFAULT_SERVER_LOCAL = "0.0.0.0:443"

_PORT_RE = re.compile(r"[+-]?\d+")


def _split_host_port(addr: str) -> tuple[str, str]:
    if addr.startswith("["):
        end = addr.find("]")
        if end == -1:
            raise ValueError(f"address {addr}: missing ']' in address")
        rest = addr[end + 1:]
        if not rest:
            raise ValueError(f"address {addr}: missing port in address")
        if not rest.startswith(":"):
            raise ValueError(f"address {addr}: unexpected text after ']'")
        host, port = addr[1:end], rest[1:]
        if ":" in port:
            raise ValueError(f"address {addr}: too many colons in address")
        return host, port
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address {addr}: missing port in address")
    if ":" in host:
        raise ValueError(f"address {addr}: too many colons in address")
    if "[" in host or "]" in host:
        raise ValueError(f"address {addr}: unexpected bracket in address")
    return host, port


def _parse_addr(addr: str, kind: str) -> tuple[str, int]:
    try:
        host, port_text = _split_host_port(addr)
    except ValueError as exc:
        raise TrojanError(f"invalid {kind} addr format:" + addr).base(exc) from exc
    if not _PORT_RE.fullmatch(port_text):
        raise TrojanError(f"invalid port number: {port_text!r}")
    return host, int(port_text)


def client_config(password: str, local: str, remote: str) -> dict:
    """Build the client config for the given password and host:port addresses."""
    local_host, local_port = _parse_addr(local, "local")
    remote_host, remote_port = _parse_addr(remote, "remote")
    return {
        "run_type": "client",
        "local_addr": local_host,
        "local_port": local_port,
        "remote_addr": remote_host,
        "remote_port": remote_port,
        "password": [password],
    }


def server_config(password: str, local: str, remote: str, cert: str, key: str) -> dict:
    """Build the server config, including the TLS certificate and key paths."""
    local_host, local_port = _parse_addr(local, "local")
    remote_host, remote_port = _parse_addr(remote, "remote")
    return {
        "run_type": "server",
        "local_addr": local_host,
        "local_port": local_port,
        "remote_addr": remote_host,
        "remote_port": remote_port,
        "password": [password],
        "ssl": {"sni": "", "cert": cert, "key": key},
    }


def _launch(data: bytes) -> None:
    try:
        instance = proxy.new_proxy_from_config_data(data, True)
    except Exception as exc:
        log.fatal(exc)
        return
    try:
        instance.run()
    except Exception as exc:
        log.fatal(exc)


class EasyOption(OptionHandler):
    """Runs a client or server without a config file."""

    def __init__(
        self,
        server: bool = False,
        client: bool = False,
        password: str = "",
        local: str = "",
        remote: str = "",
        cert: str = "server.crt",
        key: str = "server.key",
    ) -> None:
        self.server = server
        self.client = client
        self.password = password
        self.local = local
        self.remote = remote
        self.cert = cert
        self.key = key

    def name(self) -> str:
        return "easy"

    def handle(self) -> None:
        if not self.server and not self.client:
            raise TrojanError("empty")
        if not self.password:
            log.fatal("empty password is not allowed")
            return
        log.info("easy mode enabled, trojan-go will NOT use the config file")
        if self.client:
            if not self.local:
                log.warn("client local addr is unspecified, using 127.0.0.1:1080")
                self.local = DEFAULT_CLIENT_LOCAL
            try:
                cfg = client_config(self.password, self.local, self.remote)
            except TrojanError as exc:
                log.fatal(exc)
                return
            text = json.dumps(cfg, separators=(",", ":"), ensure_ascii=False)
            log.info("generated config:")
        else:
            if not self.remote:
                log.warn("server remote addr is unspecified, using 127.0.0.1:80")
                self.remote = DEFAULT_SERVER_REMOTE
            if not self.local:
                log.warn("server local addr is unspecified, using 0.0.0.0:443")
                self.local = DEFAULT_SERVER_LOCAL
            try:
                cfg = server_config(self.password, self.local, self.remote, self.cert, self.key)
            except TrojanError as exc:
                log.fatal(exc)
                return
            text = json.dumps(cfg, separators=(",", ":"), ensure_ascii=False)
            log.info("generated json config:")
        log.info(text)
        _launch(text.encode("utf-8"))

    def priority(self) -> int:
        return 50