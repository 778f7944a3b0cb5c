"""Small helpers: hashing, asset paths, traffic formatting and network utilities."""

from __future__ import annotations

import hashlib
import os
import socket
import struct
import sys
import urllib.error
import urllib.parse
import urllib.request
from typing import BinaryIO

from . import log
from .errors import TrojanError

VERSION = "Custom Version"
COMMIT = "Unknown Git Commit ID"

KIB = 1024
MIB = KIB * 1024
GIB = MIB * 1024

ASSET_LOCATION_ENV = "TROJAN_GO_LOCATION_ASSET"

_PICK_PORT_RETRIES = 16
_HTTP_TIMEOUT = 30


def sha224_string(password: str) -> str:
    """Return the lowercase hex SHA-224 digest of ``password``."""
    return hashlib.sha224(password.encode("utf-8")).hexdigest()


def get_program_dir() -> str:
    """Return the absolute directory of the running program."""
    return os.path.dirname(os.path.abspath(sys.argv[0]))


def get_asset_location(file: str) -> str:
    """Resolve an asset file name to an absolute path."""
    if os.path.isabs(file):
        return file
    location = os.environ.get(ASSET_LOCATION_ENV, "")
    if location:
        abs_path = os.path.abspath(location)
        log.debugf("env set: %s=%s", ASSET_LOCATION_ENV, abs_path)
        return os.path.normpath(os.path.join(abs_path, file))
    return os.path.normpath(os.path.join(get_program_dir(), file))


def _float32(value: int) -> float:
    return struct.unpack("f", struct.pack("f", float(value)))[0]


def human_friendly_traffic(num_bytes: int) -> str:
    """Format a byte count using B, KiB, MiB or GiB."""
    if num_bytes <= KIB:
        return f"{num_bytes} B"
    value = _float32(num_bytes)
    if num_bytes <= MIB:
        return f"{value / KIB:.2f} KiB"
    if num_bytes <= GIB:
        return f"{value / MIB:.2f} MiB"
    return f"{value / GIB:.2f} GiB"


def pick_port(network: str, host: str) -> int:
    """Return a currently free port on ``host`` for "tcp" or "udp", or 0."""
    kinds = {"tcp": socket.SOCK_STREAM, "udp": socket.SOCK_DGRAM}
    kind = kinds.get(network)
    if kind is None:
        return 0
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    for _ in range(_PICK_PORT_RETRIES):
        try:
            with socket.socket(family, kind) as sock:
                sock.bind((host, 0))
                return int(sock.getsockname()[1])
        except OSError:
            continue
    return 0


def write_all_bytes(writer, payload: bytes) -> None:
    """Write the whole payload, repeating partial writes."""
    view = memoryview(payload)
    while len(view):
        written = writer.write(view)
        if written is None:
            written = len(view)
        view = view[written:]


def write_file(path: str, payload: bytes) -> None:
    """Create or truncate ``path`` and write ``payload`` into it."""
    with open(path, "wb") as handle:
        write_all_bytes(handle, payload)


def fetch_http_content(target: str) -> bytes:
    """Fetch the body of an HTTP(S) URL, raising TrojanError on failure."""
    try:
        parsed = urllib.parse.urlparse(target)
    except ValueError as exc:
        raise TrojanError(f"invalid URL: {target}") from exc
    if parsed.scheme.lower() not in ("http", "https"):
        raise TrojanError(f"invalid scheme: {parsed.scheme}")

    request = urllib.request.Request(target, method="GET", headers={"Connection": "close"})
    try:
        with urllib.request.urlopen(request, timeout=_HTTP_TIMEOUT) as response:
            status = response.status
            if status != 200:
                raise TrojanError(f"unexpected HTTP status code: {status}")
            try:
                return response.read()
            except OSError as exc:
                raise TrojanError("failed to read HTTP response") from exc
    except urllib.error.HTTPError as exc:
        raise TrojanError(f"unexpected HTTP status code: {exc.code}") from exc
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise TrojanError(f"failed to dial to {target}") from exc


def _read_binary(handle: BinaryIO) -> bytes:
    return handle.read()