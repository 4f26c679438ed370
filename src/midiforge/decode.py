# src/midiforge/decode.py
from __future__ import annotations
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import FormatError, TruncatedDataError
from .events import (
    CONTROLLER, META, META_END_OF_TRACK, NOTE_OFF, NOTE_ON, SYSEX, SYSEX_ESCAPE,
    Controller, Meta, NoteOff, NoteOn, TimedEvent, Unsupported, data_width,
)
from .timeline import IdSource, Note, SmfHeader, Song, Track, TrackIds
from .util.chunks import read_header_chunk, read_track_chunk
from .util.time import micro_to_bpm, ticks_to_beats
from .util.vlq import decode_vlq

log = logging.getLogger(__name__)


def _need(pos: int, count: int, end: int, what: str):
    if pos + count > end:
        raise TruncatedDataError(f"track chunk ends inside {what}", pos)


def iter_track_events(buf: bytes, start: int, end: int) -> Iterator[TimedEvent]:
    """
    Yields every event of one track chunk body buf[start:end].
    Handles running status; stops at end-of-track or at the chunk bound.
    """
    pos = start
    running: Optional[int] = None
    while pos < end:
        delta, n = decode_vlq(buf, pos, end)
        pos += n
        _need(pos, 1, end, "an event")

        if buf[pos] & 0x80:
            status = buf[pos]
            pos += 1
            # only channel messages set running status
            if status < 0xF0:
                running = status
        elif running is None:
            raise FormatError("data byte without an established running status", pos)
        else:
            status = running

        if status == META:
            _need(pos, 1, end, "a meta event")
            mtype = buf[pos]
            pos += 1
            length, n = decode_vlq(buf, pos, end)
            pos += n
            _need(pos, length, end, f"meta event 0x{mtype:02X} payload")
            payload = bytes(buf[pos:pos + length])
            pos += length
            yield TimedEvent(delta, Meta(mtype, payload))
            if mtype == META_END_OF_TRACK:
                return
            continue

        if status in (SYSEX, SYSEX_ESCAPE):
            length, n = decode_vlq(buf, pos, end)
            pos += n
            _need(pos, length, end, "a sysex event")
            yield TimedEvent(delta, Unsupported(status, bytes(buf[pos:pos + length])))
            pos += length
            continue

        width = data_width(status)
        if width is None:
            raise FormatError(f"undefined status byte 0x{status:02X}", pos - 1)
        _need(pos, width, end, f"status 0x{status:02X} data")
        data = bytes(buf[pos:pos + width])
        for i, b in enumerate(data):
            if b & 0x80:
                raise FormatError(f"status byte 0x{b:02X} where a data byte was expected", pos + i)
        pos += width

        kind, channel = status >> 4, status & 0x0F
        if kind == NOTE_ON:
            ev = NoteOn(channel, data[0], data[1])
        elif kind == NOTE_OFF:
            ev = NoteOff(channel, data[0], data[1])
        elif kind == CONTROLLER:
            ev = Controller(channel, data[0], data[1])
        else:
            ev = Unsupported(status, data)
        yield TimedEvent(delta, ev)


@dataclass
class TrackResult:
    notes: List[Note] = field(default_factory=list)
    tempo: Optional[int] = None     # first tempo meta, us per beat


def decode_track(buf: bytes, start: int, end: int, division: int) -> TrackResult:
    """
    Pairs note-on/off events of one track into Notes (beats = ticks / division).

    A second note-on for a key that is still sounding closes the pending note at
    that tick. Unterminated notes at track end and unmatched note-offs are dropped.
    """
    out = TrackResult()
    now = 0
    active: Dict[Tuple[int, int], Tuple[int, int]] = {}   # (channel, key) -> (start_tick, velocity)

    def close(key: Tuple[int, int]):
        started, vel = active.pop(key)
        if now <= started:
            log.debug("dropping zero-length note %s at tick %d", key, now)
            return
        out.notes.append(Note(
            pitch=key[1],
            velocity=vel,
            start=ticks_to_beats(started, division),
            duration=ticks_to_beats(now - started, division),
        ))

    for tev in iter_track_events(buf, start, end):
        now += tev.delta
        ev = tev.event
        if isinstance(ev, NoteOn) and ev.velocity > 0:
            key = (ev.channel, ev.key)
            if key in active:
                close(key)
            active[key] = (now, ev.velocity)
        elif isinstance(ev, (NoteOn, NoteOff)):
            key = (ev.channel, ev.key)
            if key in active:
                close(key)
            else:
                log.debug("ignoring unmatched note-off %s at tick %d", key, now)
        elif isinstance(ev, Meta):
            if ev.is_tempo and out.tempo is None and ev.tempo > 0:
                out.tempo = ev.tempo
        # controllers and unsupported events carry nothing for the note model

    if active:
        log.debug("discarding %d unterminated note(s) at track end", len(active))
    out.notes.sort(key=lambda n: n.start)
    return out


def _track_spans(buf: bytes, header: SmfHeader, offset: int) -> List[Tuple[int, int]]:
    spans = []
    for i in range(header.track_count):
        if offset >= len(buf):
            raise TruncatedDataError(
                f"header declares {header.track_count} tracks, data ends after {i}", offset)
        body, end = read_track_chunk(buf, offset)
        spans.append((body, end))
        offset = end
    return spans


def _decode_span(buf: bytes, division: int, span: Tuple[int, int]) -> TrackResult:
    return decode_track(buf, span[0], span[1], division)


def read_song(data: bytes,
              id_source: Optional[IdSource] = None,
              executor: Optional[Executor] = None) -> Song:
    """
    Decodes a complete SMF buffer. All-or-nothing: any error propagates and no
    partial track list is produced. Tracks without notes are omitted.
    """
    buf = bytes(data)
    header, offset = read_header_chunk(buf, 0)
    spans = _track_spans(buf, header, offset)

    worker = partial(_decode_span, buf, header.division)
    if executor is not None:
        results = list(executor.map(worker, spans))
    else:
        results = [worker(s) for s in spans]

    ids = id_source or TrackIds()
    tracks: List[Track] = []
    tempo = None
    for idx, res in enumerate(results):
        if tempo is None and res.tempo is not None:
            tempo = res.tempo
        if not res.notes:
            log.info("track %d has no notes, skipped", idx)
            continue
        tracks.append(Track(id=ids(), name=f"Track {len(tracks) + 1}", notes=res.notes))

    bpm = micro_to_bpm(tempo) if tempo else None
    log.debug("decoded %d/%d tracks, division=%d, bpm=%s",
              len(tracks), header.track_count, header.division, bpm)
    return Song(header=header, tracks=tracks, bpm=bpm)


def decode_tracks(data: bytes,
                  id_source: Optional[IdSource] = None,
                  executor: Optional[Executor] = None) -> List[Track]:
    return read_song(data, id_source=id_source, executor=executor).tracks
