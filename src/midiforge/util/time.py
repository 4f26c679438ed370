from __future__ import annotations


def beats_to_ticks(beats: float, tpb: int) -> int:
    return int(round(beats * tpb))


def ticks_to_beats(ticks: int, tpb: int) -> float:
    return ticks / float(tpb)


def bpm_to_micro(bpm: float) -> int:
    """Microseconds per quarter note for a tempo in BPM."""
    return int(round(60_000_000 / float(bpm)))


def micro_to_bpm(micro: int) -> float:
    return 60_000_000 / float(micro)
