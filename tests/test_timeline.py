import pytest

from midiforge.timeline import Note, Track, TrackIds


class TestNote:

    @pytest.mark.parametrize("pitch,expected", [(-5, 0), (0, 0), (127, 127), (200, 127)])
    def test_pitch_clamped(self, pitch, expected):
        assert Note(pitch, 100, 0, 1).pitch == expected

    @pytest.mark.parametrize("velocity,expected", [(0, 1), (1, 1), (127, 127), (300, 127)])
    def test_velocity_clamped(self, velocity, expected):
        assert Note(60, velocity, 0, 1).velocity == expected

    @pytest.mark.parametrize("duration", [0, -1])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ValueError):
            Note(60, 100, 0, duration)

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            Note(60, 100, -0.5, 1)

    def test_immutable(self):
        n = Note(60, 100, 0, 1)
        with pytest.raises(AttributeError):
            n.pitch = 61

    def test_dict_round_trip(self):
        n = Note(60, 100, 0.5, 0.25)
        assert Note.from_dict(n.to_dict()) == n
        assert n.end == 0.75


class TestTrack:

    def test_mixer_values_clamped(self):
        t = Track(id="x", name="x", volume=1.5, pan=-3)
        assert (t.volume, t.pan) == (1.0, -1.0)

    def test_dict_round_trip(self):
        t = Track(id="x", name="Bass", instrument="electric_bass_finger",
                  notes=[Note(40, 90, 0, 1)], volume=0.5, pan=0.25, mute=True)
        assert Track.from_dict(t.to_dict()) == t

    def test_from_dict_uses_fallback_id(self):
        t = Track.from_dict({"name": "Lead", "notes": []}, track_id="gen-1")
        assert t.id == "gen-1"


def test_track_ids_are_sequential_per_source():
    ids = TrackIds()
    assert [ids(), ids()] == ["track-1", "track-2"]
    assert TrackIds(prefix="imp", start=5)() == "imp-5"


@pytest.mark.parametrize("start,duration", [
    (float("inf"), 1),
    (float("nan"), 1),
    (0, float("inf")),
    (0, float("nan")),
])
def test_non_finite_timing_rejected(start, duration):
    with pytest.raises(ValueError):
        Note(60, 100, start, duration)
