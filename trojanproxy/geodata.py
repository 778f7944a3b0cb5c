"""Extract a single GeoIP or GeoSite entry from a geodata list file.

Each list entry is field 1 (length-delimited) of the list message, and the
entry's first field is its length-delimited country code.
"""

from __future__ import annotations

from typing import BinaryIO

from .errors import TrojanError

_TAG_FIELD_1_BYTES = 0x0A
_MAX_VARINT_BYTES = 10


class GeodataError(TrojanError):
    """Base class of geodata decoding errors."""


class FailedToReadBytesError(GeodataError):
    def __init__(self) -> None:
        super().__init__("failed to read bytes")


class FailedToReadExpectedLenBytesError(GeodataError):
    def __init__(self) -> None:
        super().__init__("failed to read expected length of bytes")


class InvalidGeodataFileError(GeodataError):
    def __init__(self) -> None:
        super().__init__("invalid geodata file")


class InvalidGeodataVarintLengthError(GeodataError):
    def __init__(self) -> None:
        super().__init__("invalid geodata varint length")


class CodeNotFoundError(GeodataError):
    def __init__(self) -> None:
        super().__init__("code not found")


def _consume_varint(data: bytes) -> tuple[int, int]:
    value = 0
    for index, byte in enumerate(data):
        if index >= _MAX_VARINT_BYTES or (index == _MAX_VARINT_BYTES - 1 and byte > 1):
            raise InvalidGeodataVarintLengthError()
        value |= (byte & 0x7F) << (7 * index)
        if byte < 0x80:
            return value, index + 1
    raise InvalidGeodataVarintLengthError()


def emit_bytes(f: BinaryIO, code: str) -> bytes:
    """Return the serialized entry whose code equals ``code`` ignoring case."""
    wanted = code.casefold()
    state = 1
    is_inner = False
    pending = bytearray()
    advance = 1
    entry_len = code_len = code_len_size = 0

    while True:
        try:
            chunk = f.read(advance)
        except OSError as exc:
            raise FailedToReadBytesError() from exc
        if advance > 0 and not chunk:
            raise CodeNotFoundError()
        if len(chunk) != advance:
            raise FailedToReadExpectedLenBytesError()

        if state in (1, 3):
            if chunk[0] != _TAG_FIELD_1_BYTES:
                raise InvalidGeodataFileError()
            advance = 1
            state += 1
        elif state in (2, 4):
            pending.extend(chunk)
            if chunk[0] > 0x7F:
                advance = 1
                continue
            length, size = _consume_varint(bytes(pending))
            pending.clear()
            if not is_inner:
                is_inner = True
                entry_len = length
                advance = 1
            else:
                is_inner = False
                code_len = length
                code_len_size = size
                advance = code_len
            state += 1
        elif state == 5:
            if chunk.decode("utf-8", "replace").casefold() == wanted:
                state += 1
                f.seek(-(1 + code_len_size + code_len), 1)
                advance = entry_len
            else:
                state = 1
                f.seek(entry_len - code_len - code_len_size - 1, 1)
                advance = 1
        else:
            return bytes(chunk)


def decode(filename: str, code: str) -> bytes:
    """Open ``filename`` and return the entry for ``code``."""
    with open(filename, "rb") as handle:
        return emit_bytes(handle, code)