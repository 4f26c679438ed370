# src/midiforge/util/chunks.py
from __future__ import annotations
import struct
from typing import Tuple
from ..errors import FormatError, RangeError, TruncatedDataError
from ..timeline import SmfHeader

HEADER_TAG = b"MThd"
TRACK_TAG = b"MTrk"
HEADER_BODY_LEN = 6
MAX_DIVISION = 0x7FFF


def read_chunk_header(buf: bytes, offset: int) -> Tuple[bytes, int, int]:
    """Returns (tag, length, body_offset) of the chunk starting at 'offset'."""
    if len(buf) - offset < 8:
        raise FormatError("fewer than 8 bytes left for a chunk header", offset)
    tag = bytes(buf[offset:offset + 4])
    (length,) = struct.unpack(">I", buf[offset + 4:offset + 8])
    return tag, length, offset + 8


def read_header_chunk(buf: bytes, offset: int = 0) -> Tuple[SmfHeader, int]:
    """
    Validates the MThd chunk and returns (header, offset of the next chunk).
    Header bodies longer than 6 bytes are allowed; the surplus is skipped.
    """
    tag, length, body = read_chunk_header(buf, offset)
    if tag != HEADER_TAG:
        raise FormatError(f"expected {HEADER_TAG!r} chunk, found {tag!r}", offset)
    if length < HEADER_BODY_LEN:
        raise FormatError(f"header chunk length {length} is shorter than {HEADER_BODY_LEN}", offset + 4)
    if body + length > len(buf):
        raise TruncatedDataError("header chunk runs past end of data", body)

    fmt, ntrks, division = struct.unpack(">HHH", buf[body:body + HEADER_BODY_LEN])
    if fmt not in (0, 1):
        raise FormatError(f"unsupported SMF format {fmt}", body)
    if division & 0x8000:
        raise FormatError("SMPTE time division is not supported", body + 4)
    if division == 0:
        raise FormatError("time division must be > 0", body + 4)
    return SmfHeader(format=fmt, track_count=ntrks, division=division), body + length


def read_track_chunk(buf: bytes, offset: int) -> Tuple[int, int]:
    """
    Validates an MTrk chunk and returns (body_offset, body_end).
    The event loop must stay within [body_offset, body_end).
    """
    tag, length, body = read_chunk_header(buf, offset)
    if tag != TRACK_TAG:
        raise FormatError(f"expected {TRACK_TAG!r} chunk, found {tag!r}", offset)
    end = body + length
    if end > len(buf):
        raise TruncatedDataError(f"track chunk declares {length} bytes, only {len(buf) - body} available", body)
    return body, end


def write_chunk(tag: bytes, body: bytes) -> bytes:
    if len(tag) != 4:
        raise ValueError(f"chunk tag must be 4 bytes, got {tag!r}")
    if len(body) > 0xFFFFFFFF:
        raise RangeError(f"chunk body of {len(body)} bytes does not fit a 32-bit length")
    return tag + struct.pack(">I", len(body)) + bytes(body)


def write_header_chunk(header: SmfHeader) -> bytes:
    if not 0 < header.division <= MAX_DIVISION:
        raise RangeError(f"ticks per beat {header.division} outside 1..{MAX_DIVISION}")
    if header.track_count > 0xFFFF:
        raise RangeError(f"{header.track_count} tracks do not fit the header")
    return write_chunk(HEADER_TAG, struct.pack(">HHH", header.format, header.track_count, header.division))
