"""Readers that can replay what they have read, and a write-coalescing writer."""

from __future__ import annotations

import socket
import threading

from . import log


class RewindReader:
    """Wraps a raw reader and can replay bytes read while buffering was on."""

    def __init__(self, raw) -> None:
        self._raw = raw
        self._lock = threading.Lock()
        self._buf = bytearray()
        self._read_idx = 0
        self._rewound = False
        self._buffering = False
        self._buffer_size = 0

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes, from the replay buffer first if rewound."""
        with self._lock:
            if self._rewound:
                if len(self._buf) > self._read_idx:
                    chunk = bytes(self._buf[self._read_idx:self._read_idx + size])
                    self._read_idx += len(chunk)
                    return chunk
                self._rewound = False
            data = self._raw.read(size) or b""
            if self._buffering:
                self._buf.extend(data)
                if len(self._buf) > self._buffer_size * 2:
                    log.debug("read too many bytes!")
            return bytes(data)

    def read_byte(self) -> int:
        """Read a single byte; raise EOFError when the source is exhausted."""
        data = self.read(1)
        if not data:
            raise EOFError("end of stream")
        return data[0]

    def discard(self, n: int) -> int:
        """Read and drop up to ``n`` bytes, returning how many were dropped."""
        total = 0
        while total < n:
            chunk = self.read(min(128, n - total))
            if not chunk:
                break
            total += len(chunk)
        return total

    def rewind(self) -> None:
        """Replay buffered bytes from the start on the next reads."""
        with self._lock:
            if self._buffer_size == 0:
                raise RuntimeError("no buffer")
            self._rewound = True
            self._read_idx = 0

    def stop_buffering(self) -> None:
        """Stop recording newly read bytes."""
        with self._lock:
            self._buffering = False

    def set_buffer_size(self, size: int) -> None:
        """Start buffering with the given size, or disable it with 0."""
        with self._lock:
            if size == 0:
                if not self._buffering:
                    raise RuntimeError("reader is disabled")
                self._buffering = False
                self._buf = bytearray()
                self._read_idx = 0
                self._buffer_size = 0
            else:
                if self._buffering:
                    raise RuntimeError("reader is buffering")
                self._buffering = True
                self._read_idx = 0
                self._buffer_size = size
                self._buf = bytearray()


class RewindConn(RewindReader):
    """A socket whose incoming bytes can be rewound."""

    def __init__(self, conn: socket.socket) -> None:
        super().__init__(socket.SocketIO(conn, "rb"))
        self.conn = conn

    def read(self, size: int) -> bytes:
        return super().read(size)

    def write(self, data: bytes) -> int:
        self.conn.sendall(data)
        return len(data)

    def close(self) -> None:
        self._raw.close()
        self.conn.close()


class StickyWriter:
    """Holds the first ``max_buffered`` writes and sends them as one."""

    def __init__(self, raw, max_buffered: int = 0) -> None:
        self._raw = raw
        self._pending = bytearray()
        self.max_buffered = max_buffered

    def write(self, data: bytes) -> int:
        if self.max_buffered > 0:
            self.max_buffered -= 1
            self._pending.extend(data)
            if self.max_buffered != 0:
                return len(data)
            pending, self._pending = bytes(self._pending), bytearray()
            self._raw.write(pending)
            return len(data)
        written = self._raw.write(data)
        return len(data) if written is None else written