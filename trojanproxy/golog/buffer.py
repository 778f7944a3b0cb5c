"""A growable byte buffer for building log lines."""

from __future__ import annotations


class Buffer(bytearray):
    """Byte buffer with append helpers."""

    def reset(self) -> None:
        """Empty the buffer."""
        self.clear()

    def append_bytes(self, data: bytes) -> None:
        self.extend(data)

    def append_byte(self, value: int | bytes) -> None:
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 1:
                raise ValueError("expected a single byte")
            value = value[0]
        self.append(value)

    def append_int(self, val: int, width: int) -> None:
        """Append ``val`` in decimal, zero-padded to at least ``width`` digits."""
        if val < 0:
            raise ValueError("negative values are not supported")
        self.extend(f"{val:0{max(width, 0)}d}".encode("ascii"))