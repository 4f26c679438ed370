# src/midiforge/events.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Union
from .errors import RangeError
from .util.vlq import encode_vlq

NOTE_OFF = 0x8
NOTE_ON = 0x9
POLY_PRESSURE = 0xA
CONTROLLER = 0xB
PROGRAM_CHANGE = 0xC
CHANNEL_PRESSURE = 0xD
PITCH_BEND = 0xE

META = 0xFF
SYSEX = 0xF0
SYSEX_ESCAPE = 0xF7

META_END_OF_TRACK = 0x2F
META_TEMPO = 0x51

# Data bytes following a channel status, keyed by high nibble.
CHANNEL_DATA_WIDTH: Dict[int, int] = {
    NOTE_OFF: 2,
    NOTE_ON: 2,
    POLY_PRESSURE: 2,
    CONTROLLER: 2,
    PROGRAM_CHANGE: 1,
    CHANNEL_PRESSURE: 1,
    PITCH_BEND: 2,
}

# System common / realtime statuses with a fixed payload. F0/F7 (sysex) and
# FF (meta) are length-prefixed; F4/F5 are undefined.
SYSTEM_DATA_WIDTH: Dict[int, int] = {
    0xF1: 1, 0xF2: 2, 0xF3: 1, 0xF6: 0,
    0xF8: 0, 0xF9: 0, 0xFA: 0, 0xFB: 0, 0xFC: 0, 0xFD: 0, 0xFE: 0,
}


def data_width(status: int) -> Optional[int]:
    """Fixed payload width for a status byte, or None if it has none."""
    if status < 0xF0:
        return CHANNEL_DATA_WIDTH[status >> 4]
    return SYSTEM_DATA_WIDTH.get(status)


@dataclass(frozen=True)
class NoteOn:
    channel: int
    key: int
    velocity: int


@dataclass(frozen=True)
class NoteOff:
    channel: int
    key: int
    velocity: int


@dataclass(frozen=True)
class Controller:
    channel: int
    controller: int
    value: int


@dataclass(frozen=True)
class Meta:
    type: int
    payload: bytes = b""

    @property
    def is_tempo(self) -> bool:
        return self.type == META_TEMPO and len(self.payload) == 3

    @property
    def tempo(self) -> int:
        """Microseconds per quarter note."""
        return int.from_bytes(self.payload[:3], "big")


@dataclass(frozen=True)
class Unsupported:
    status: int
    data: bytes = b""


Event = Union[NoteOn, NoteOff, Controller, Meta, Unsupported]


@dataclass(frozen=True)
class TimedEvent:
    delta: int
    event: Event


def tempo_meta(micro: int) -> Meta:
    if not 0 < micro <= 0xFFFFFF:
        raise RangeError(f"tempo of {micro} us per beat does not fit 24 bits")
    return Meta(META_TEMPO, micro.to_bytes(3, "big"))


def end_of_track() -> Meta:
    return Meta(META_END_OF_TRACK)


def event_bytes(ev: Event) -> bytes:
    """Serializes one event with an explicit status byte (no running status)."""
    if isinstance(ev, NoteOn):
        return bytes([0x90 | (ev.channel & 0x0F), ev.key & 0x7F, ev.velocity & 0x7F])
    if isinstance(ev, NoteOff):
        return bytes([0x80 | (ev.channel & 0x0F), ev.key & 0x7F, ev.velocity & 0x7F])
    if isinstance(ev, Controller):
        return bytes([0xB0 | (ev.channel & 0x0F), ev.controller & 0x7F, ev.value & 0x7F])
    if isinstance(ev, Meta):
        return bytes([META, ev.type & 0x7F]) + encode_vlq(len(ev.payload)) + bytes(ev.payload)
    raise TypeError(f"cannot serialize {type(ev).__name__}")
