import pytest

from midiforge.errors import FormatError, RangeError, TruncatedDataError
from midiforge.util.vlq import MAX_VLQ, decode_vlq, encode_vlq


@pytest.mark.parametrize("value,encoded", [
    (0, "00"),
    (0x40, "40"),
    (0x7F, "7F"),
    (0x80, "81 00"),
    (0x2000, "C0 00"),
    (0x3FFF, "FF 7F"),
    (0x4000, "81 80 00"),
    (0x1FFFFF, "FF FF 7F"),
    (0x200000, "81 80 80 00"),
    (MAX_VLQ, "FF FF FF 7F"),
])
def test_known_encodings(value, encoded):
    raw = bytes.fromhex(encoded)
    assert encode_vlq(value) == raw
    assert decode_vlq(raw, 0) == (value, len(raw))


def test_round_trip_across_range():
    for v in list(range(0, 300)) + [16383, 16384, 2 ** 21 - 1, 2 ** 21, 123456789, MAX_VLQ]:
        raw = encode_vlq(v)
        assert decode_vlq(raw, 0) == (v, len(raw))


def test_decode_at_offset_reports_bytes_consumed():
    buf = b"\xAA\xAA" + encode_vlq(1000) + b"\x90"
    assert decode_vlq(buf, 2) == (1000, 2)


def test_decode_truncated():
    with pytest.raises(TruncatedDataError):
        decode_vlq(b"\x81\x80", 0)
    with pytest.raises(TruncatedDataError):
        decode_vlq(b"", 0)


def test_decode_respects_end_bound():
    # terminating byte exists but lies beyond 'end'
    with pytest.raises(TruncatedDataError):
        decode_vlq(b"\x81\x00", 0, end=1)


def test_decode_rejects_five_byte_quantity():
    with pytest.raises(FormatError):
        decode_vlq(b"\x81\x80\x80\x80\x00", 0)


@pytest.mark.parametrize("value", [-1, MAX_VLQ + 1])
def test_encode_out_of_range(value):
    with pytest.raises(RangeError):
        encode_vlq(value)
