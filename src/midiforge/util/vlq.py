# src/midiforge/util/vlq.py
from __future__ import annotations
from typing import Optional, Tuple
from ..errors import FormatError, RangeError, TruncatedDataError

MAX_VLQ_BYTES = 4
MAX_VLQ = (1 << 28) - 1


def decode_vlq(buf: bytes, offset: int, end: Optional[int] = None) -> Tuple[int, int]:
    """
    Reads a variable-length quantity starting at buf[offset].
    Returns (value, bytes_consumed). 'end' bounds the read (default: len(buf)).
    """
    limit = len(buf) if end is None else min(end, len(buf))
    value = 0
    pos = offset
    for _ in range(MAX_VLQ_BYTES):
        if pos >= limit:
            raise TruncatedDataError("buffer ends inside a variable-length quantity", pos)
        b = buf[pos]
        pos += 1
        value = (value << 7) | (b & 0x7F)
        if not b & 0x80:
            return value, pos - offset
    raise FormatError(f"variable-length quantity longer than {MAX_VLQ_BYTES} bytes", offset)


def encode_vlq(value: int) -> bytes:
    if value < 0 or value > MAX_VLQ:
        raise RangeError(f"value {value} outside VLQ range 0..{MAX_VLQ}")
    out = bytearray([value & 0x7F])
    value >>= 7
    while value:
        out.insert(0, (value & 0x7F) | 0x80)
        value >>= 7
    return bytes(out)
