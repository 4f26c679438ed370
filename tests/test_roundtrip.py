import io

import mido
import pytest

from midiforge import decode_tracks, encode_tracks, read_song
from midiforge.timeline import Note, Track
from midiforge.write import verify_with_mido
from midiforge.errors import FormatError


def test_single_note_round_trip():
    src = Track(id="a", name="Lead", notes=[Note(pitch=60, velocity=100, start=0, duration=1)])
    data = encode_tracks([src], bpm=120, ticks_per_beat=128)
    tracks = decode_tracks(data)
    assert len(tracks) == 1
    assert tracks[0].notes == [Note(pitch=60, velocity=100, start=0, duration=1)]


def test_simultaneous_notes_both_recovered():
    src = Track(id="a", name="Chord", notes=[Note(67, 90, 1, 1), Note(60, 80, 1, 2)])
    tracks = decode_tracks(encode_tracks([src], ticks_per_beat=96))
    assert sorted(n.to_dict()["pitch"] for n in tracks[0].notes) == [60, 67]
    by_pitch = {n.pitch: n for n in tracks[0].notes}
    assert by_pitch[67] == Note(67, 90, 1.0, 1.0)
    assert by_pitch[60] == Note(60, 80, 1.0, 2.0)


def test_multi_track_round_trip_keeps_order_and_tempo():
    a = Track(id="a", name="A", notes=[Note(60, 100, 0, 0.5), Note(62, 100, 0.5, 0.5)])
    b = Track(id="b", name="B", notes=[Note(36, 110, 0, 2)])
    song = read_song(encode_tracks([a, b], bpm=90, ticks_per_beat=480))
    assert song.header.format == 1
    assert song.header.division == 480
    assert song.bpm == pytest.approx(90.0, rel=1e-6)
    assert [t.notes for t in song.tracks] == [a.notes, b.notes]


def test_mido_reads_encoded_file():
    src = Track(id="a", name="Lead", notes=[Note(60, 100, 0, 1)])
    mid = verify_with_mido(encode_tracks([src], bpm=120, ticks_per_beat=128))
    assert mid.ticks_per_beat == 128
    msgs = [m for m in mid.tracks[0]]
    assert msgs[0].type == "set_tempo" and msgs[0].tempo == 500000
    assert msgs[1].type == "note_on" and msgs[1].note == 60 and msgs[1].velocity == 100
    assert msgs[2].type == "note_off" and msgs[2].time == 128
    assert msgs[3].type == "end_of_track"


def test_decodes_mido_written_file_with_running_status():
    mid = mido.MidiFile(ticks_per_beat=96)
    tr = mido.MidiTrack()
    tr.append(mido.MetaMessage("track_name", name="mido", time=0))
    tr.append(mido.Message("program_change", program=5, time=0))
    tr.append(mido.Message("note_on", note=60, velocity=100, time=0))
    tr.append(mido.Message("note_on", note=64, velocity=90, time=0))
    tr.append(mido.Message("note_on", note=60, velocity=0, time=96))
    tr.append(mido.Message("control_change", control=64, value=127, time=0))
    tr.append(mido.Message("pitchwheel", pitch=100, time=0))
    tr.append(mido.Message("note_on", note=64, velocity=0, time=96))
    mid.tracks.append(tr)
    buf = io.BytesIO()
    mid.save(file=buf)

    tracks = decode_tracks(buf.getvalue())
    assert tracks[0].notes == [Note(60, 100, 0.0, 1.0), Note(64, 90, 0.0, 2.0)]


def test_verify_with_mido_rejects_garbage():
    with pytest.raises(FormatError):
        verify_with_mido(b"not a midi file")
