# src/midiforge/encode.py
from __future__ import annotations
import logging
import math
from typing import List, Sequence, Tuple

from .errors import RangeError
from .events import Event, NoteOff, NoteOn, end_of_track, event_bytes, tempo_meta
from .timeline import DEFAULT_BPM, DEFAULT_TPB, Note, SmfHeader, Track
from .util.chunks import MAX_DIVISION, TRACK_TAG, write_chunk, write_header_chunk
from .util.time import beats_to_ticks, bpm_to_micro
from .util.vlq import MAX_VLQ, encode_vlq

log = logging.getLogger(__name__)

CHANNEL = 0

# order of events sharing a tick: tempo, then note-offs, then note-ons
_ORDER_TEMPO = 0
_ORDER_OFF = 1
_ORDER_ON = 2


def note_ticks(note: Note, tpb: int) -> Tuple[int, int]:
    """(on_tick, off_tick); a note never collapses to zero ticks."""
    if not math.isfinite((note.start + note.duration) * tpb):
        raise RangeError(f"note at beat {note.start} with duration {note.duration} has no tick position")
    on = beats_to_ticks(note.start, tpb)
    off = beats_to_ticks(note.start + note.duration, tpb)
    if off <= on:
        off = on + 1
    if off > MAX_VLQ:
        raise RangeError(f"note at beat {note.start} ends at tick {off}, beyond {MAX_VLQ}")
    return on, off


def _check_tempo(bpm: float) -> int:
    if not bpm or not math.isfinite(bpm) or bpm <= 0:
        raise RangeError(f"bpm must be > 0, got {bpm}")
    return bpm_to_micro(bpm)


def track_events(track: Track, bpm: float, tpb: int) -> List[Tuple[int, Event]]:
    """Absolute-time (tick, event) list for one track, sorted for output."""
    micro = _check_tempo(bpm)
    evs = [(0, _ORDER_TEMPO, tempo_meta(micro))]
    # sorted() is stable, so notes with equal starts keep their relative order
    for n in sorted(track.notes, key=lambda n: n.start):
        on, off = note_ticks(n, tpb)
        evs.append((on, _ORDER_ON, NoteOn(CHANNEL, n.pitch, n.velocity)))
        evs.append((off, _ORDER_OFF, NoteOff(CHANNEL, n.pitch, 0)))
    evs.sort(key=lambda x: (x[0], x[1]))
    return [(tick, ev) for tick, _, ev in evs]


def encode_track(track: Track, bpm: float = DEFAULT_BPM, ticks_per_beat: int = DEFAULT_TPB) -> bytes:
    """Returns one complete MTrk chunk."""
    body = bytearray()
    last = 0
    for tick, ev in track_events(track, bpm, ticks_per_beat):
        body += encode_vlq(tick - last)
        body += event_bytes(ev)
        last = tick
    body += encode_vlq(0) + event_bytes(end_of_track())
    return write_chunk(TRACK_TAG, bytes(body))


def encode_tracks(tracks: Sequence[Track],
                  bpm: float = DEFAULT_BPM,
                  ticks_per_beat: int = DEFAULT_TPB) -> bytes:
    """
    Serializes tracks into an SMF buffer (format 0 for one track, 1 otherwise).
    'ticks_per_beat' is written as the header division.
    """
    if not 0 < ticks_per_beat <= MAX_DIVISION:
        raise RangeError(f"ticks per beat {ticks_per_beat} outside 1..{MAX_DIVISION}")
    tempo_meta(_check_tempo(bpm))
    header = SmfHeader(format=1 if len(tracks) > 1 else 0,
                       track_count=len(tracks),
                       division=ticks_per_beat)
    out = bytearray(write_header_chunk(header))
    for tr in tracks:
        out += encode_track(tr, bpm, ticks_per_beat)
    log.debug("encoded %d tracks at %s bpm, %d tpb (%d bytes)",
              len(tracks), bpm, ticks_per_beat, len(out))
    return bytes(out)
