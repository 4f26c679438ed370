# src/midiforge/timeline.py
from __future__ import annotations
import itertools
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

DEFAULT_TPB = 480
DEFAULT_BPM = 120.0
DEFAULT_INSTRUMENT = "acoustic_grand_piano"
DEFAULT_VOLUME = 0.8


def _clamp(v, lo, hi):
    return max(lo, min(hi, v))


@dataclass(frozen=True)
class Note:
    """
    One note in beats (quarter notes). Pitch is clamped to 0..127 and velocity
    to 1..127 on construction; timing values are rejected when invalid.
    """
    pitch: int
    velocity: int
    start: float      # beats
    duration: float   # beats

    def __post_init__(self):
        object.__setattr__(self, "pitch", int(_clamp(int(self.pitch), 0, 127)))
        object.__setattr__(self, "velocity", int(_clamp(int(self.velocity), 1, 127)))
        if not (math.isfinite(self.start) and math.isfinite(self.duration)):
            raise ValueError(f"note timing must be finite, got start={self.start} duration={self.duration}")
        if self.start < 0:
            raise ValueError(f"note start must be >= 0, got {self.start}")
        if self.duration <= 0:
            raise ValueError(f"note duration must be > 0, got {self.duration}")

    @property
    def end(self) -> float:
        return self.start + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {"pitch": self.pitch, "velocity": self.velocity,
                "start": self.start, "duration": self.duration}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Note":
        return cls(pitch=d["pitch"], velocity=d.get("velocity", 100),
                   start=d["start"], duration=d["duration"])


@dataclass
class Track:
    id: str
    name: str
    instrument: str = DEFAULT_INSTRUMENT
    notes: List[Note] = field(default_factory=list)
    volume: float = DEFAULT_VOLUME
    pan: float = 0.0
    mute: bool = False
    solo: bool = False

    def __post_init__(self):
        self.volume = float(_clamp(self.volume, 0.0, 1.0))
        self.pan = float(_clamp(self.pan, -1.0, 1.0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id, "name": self.name, "instrument": self.instrument,
            "notes": [n.to_dict() for n in self.notes],
            "volume": self.volume, "pan": self.pan, "mute": self.mute, "solo": self.solo,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], track_id: Optional[str] = None) -> "Track":
        return cls(
            id=str(d.get("id") or track_id),
            name=d.get("name") or "Track",
            instrument=d.get("instrument", DEFAULT_INSTRUMENT),
            notes=[Note.from_dict(n) for n in d.get("notes", [])],
            volume=d.get("volume", DEFAULT_VOLUME),
            pan=d.get("pan", 0.0),
            mute=bool(d.get("mute", False)),
            solo=bool(d.get("solo", False)),
        )


@dataclass(frozen=True)
class SmfHeader:
    format: int
    track_count: int
    division: int     # ticks per quarter note


@dataclass
class Song:
    header: SmfHeader
    tracks: List[Track]
    bpm: Optional[float] = None     # None when the file carries no tempo


class TrackIds:
    """Deterministic id source: track-1, track-2, ..."""

    def __init__(self, prefix: str = "track", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


IdSource = Callable[[], str]
