import struct

import pytest


def _smf(division, *bodies, fmt=None):
    fmt = (1 if len(bodies) > 1 else 0) if fmt is None else fmt
    out = b"MThd" + struct.pack(">IHHH", 6, fmt, len(bodies), division)
    for body in bodies:
        out += b"MTrk" + struct.pack(">I", len(body)) + body
    return out


@pytest.fixture
def smf():
    """Builds an SMF buffer from raw track bodies: smf(division, body, ...)."""
    return _smf


EOT = bytes.fromhex("00 FF 2F 00")


@pytest.fixture
def eot():
    return EOT
