# src/midiforge/write.py
from __future__ import annotations
import dataclasses
import io
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import mido

from .decode import read_song
from .encode import encode_tracks
from .errors import FormatError
from .timeline import DEFAULT_BPM, DEFAULT_TPB, IdSource, Song, Track, TrackIds

log = logging.getLogger(__name__)

# ---------- helpers ----------

def _sanitize_filename(name: str, fallback: str = "Track") -> str:
    """Filesystem-safe name; 'fallback' when nothing usable remains."""
    name = re.sub(r"[^\w\s\-\.\(\)\[\]]+", "_", name.strip())
    name = re.sub(r"\s+", " ", name).strip(" .")
    return name or fallback


def _apply_defaults(tracks: Iterable[Track], defaults: Optional[Dict[str, Any]]) -> List[Track]:
    if not defaults:
        return list(tracks)
    keys = {k: v for k, v in defaults.items() if k in ("instrument", "volume", "pan")}
    return [dataclasses.replace(t, **keys) for t in tracks]


def verify_with_mido(data: bytes) -> mido.MidiFile:
    """Re-reads encoded bytes with mido; FormatError if it rejects them."""
    try:
        return mido.MidiFile(file=io.BytesIO(data))
    except (OSError, EOFError, ValueError, KeyError) as e:
        raise FormatError(f"mido rejected the encoded data: {e}") from e

# ---------- import ----------

def read_midi(path: str,
              id_source: Optional[IdSource] = None,
              track_defaults: Optional[Dict[str, Any]] = None) -> Song:
    data = Path(path).read_bytes()
    song = read_song(data, id_source=id_source)
    song.tracks = _apply_defaults(song.tracks, track_defaults)
    log.info("read %s: %d track(s), division=%d", path, len(song.tracks), song.header.division)
    return song


def load_project(path: str, id_source: Optional[IdSource] = None) -> Dict[str, Any]:
    """
    Reads an editor project JSON: either a list of track dicts or
    {"bpm": ..., "tracks": [...]}. Returns {"bpm": float | None, "tracks": [Track]};
    bpm is None when the project does not set one.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(raw, list):
        raw = {"tracks": raw}
    ids = id_source or TrackIds()
    tracks = [Track.from_dict(d, track_id=ids()) for d in raw.get("tracks", [])]
    bpm = raw.get("bpm")
    return {"bpm": float(bpm) if bpm is not None else None, "tracks": tracks}


def project_json(tracks: Sequence[Track], bpm: Optional[float] = None) -> str:
    return json.dumps({"bpm": bpm, "tracks": [t.to_dict() for t in tracks]}, indent=2)


def save_project(tracks: Sequence[Track], path: str, bpm: Optional[float] = None):
    Path(path).write_text(project_json(tracks, bpm), encoding="utf-8")

# ---------- export ----------

def export_bytes(tracks: Sequence[Track],
                 bpm: float = DEFAULT_BPM,
                 ticks_per_beat: int = DEFAULT_TPB,
                 verify: bool = False) -> bytes:
    data = encode_tracks(tracks, bpm=bpm, ticks_per_beat=ticks_per_beat)
    if verify:
        verify_with_mido(data)
    return data


def export_parts(tracks: Sequence[Track],
                 bpm: float = DEFAULT_BPM,
                 ticks_per_beat: int = DEFAULT_TPB,
                 template: str = "{index:02d}-{name}.mid",
                 verify: bool = False) -> List[Tuple[str, bytes]]:
    """
    (file name, SMF bytes) per track, one format-0 file each.
    - template: placeholders {index}, {name}
    """
    out = []
    for idx, tr in enumerate(tracks, start=1):
        fname = template.format(index=idx, name=_sanitize_filename(tr.name, f"Track {idx}"))
        out.append((fname, export_bytes([tr], bpm=bpm, ticks_per_beat=ticks_per_beat, verify=verify)))
    return out


def write_midi(tracks: Sequence[Track],
               out_path: str,
               bpm: float = DEFAULT_BPM,
               ticks_per_beat: int = DEFAULT_TPB,
               verify: bool = False) -> bytes:
    """
    Encodes all tracks into one SMF file. Nothing is written if encoding
    (or the optional mido check) fails.
    """
    data = export_bytes(tracks, bpm=bpm, ticks_per_beat=ticks_per_beat, verify=verify)
    Path(out_path).write_bytes(data)
    log.info("wrote %s (%d bytes, %d track(s))", out_path, len(data), len(tracks))
    return data


def write_parts(parts: Sequence[Tuple[str, bytes]], out_dir: str) -> List[str]:
    os.makedirs(out_dir, exist_ok=True)
    paths = []
    for fname, data in parts:
        path = os.path.join(out_dir, fname)
        Path(path).write_bytes(data)
        paths.append(path)
    log.info("wrote %d part file(s) to %s", len(paths), out_dir)
    return paths


def write_parts_separately(
    tracks: Sequence[Track],
    out_dir: str,
    bpm: float = DEFAULT_BPM,
    ticks_per_beat: int = DEFAULT_TPB,
    template: str = "{index:02d}-{name}.mid",
    verify: bool = False,
) -> List[str]:
    """One SMF per track; every part is encoded before any file is written."""
    parts = export_parts(tracks, bpm=bpm, ticks_per_beat=ticks_per_beat, template=template, verify=verify)
    return write_parts(parts, out_dir)
