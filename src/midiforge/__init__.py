"""Standard MIDI File codec for a multi-track note model."""
from .decode import decode_tracks, iter_track_events, read_song
from .encode import encode_track, encode_tracks
from .errors import FormatError, RangeError, SmfError, TruncatedDataError
from .timeline import DEFAULT_BPM, DEFAULT_TPB, Note, SmfHeader, Song, Track, TrackIds
from .util.vlq import decode_vlq, encode_vlq

__all__ = [
    "decode_tracks", "iter_track_events", "read_song",
    "encode_track", "encode_tracks",
    "FormatError", "RangeError", "SmfError", "TruncatedDataError",
    "DEFAULT_BPM", "DEFAULT_TPB", "Note", "SmfHeader", "Song", "Track", "TrackIds",
    "decode_vlq", "encode_vlq",
]
