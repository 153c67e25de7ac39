"""
Tests for p3drum/performance: Keys and Circle of Fifths surface data.
"""

import pytest
from pydantic import ValidationError

from p3drum.performance import (
    CIRCLE_OF_FIFTHS,
    ActivePerformanceSurface,
    KeyMode,
    MPEParameters,
    MusicalNote,
    keyboard_notes,
)


class TestMusicalNote:
    def test_a4_is_440(self):
        assert MusicalNote(midi_note=69).frequency == pytest.approx(440.0)

    def test_middle_c(self):
        note = MusicalNote(midi_note=60)
        assert note.name == "C4"
        assert note.frequency == pytest.approx(261.63, abs=0.01)
        assert note.pitch_shift_semitones == 0.0

    @pytest.mark.parametrize(
        "midi,name,black",
        [(61, "C#4", True), (64, "E4", False), (70, "A#4", True), (48, "C3", False)],
    )
    def test_names_and_black_keys(self, midi, name, black):
        note = MusicalNote(midi_note=midi)
        assert note.name == name
        assert note.is_black_key is black

    def test_out_of_range(self):
        with pytest.raises(ValidationError):
            MusicalNote(midi_note=128)


def test_keyboard_spans_two_octaves():
    notes = keyboard_notes()
    assert len(notes) == 25
    assert notes[0].name == "C3"
    assert notes[-1].name == "C5"
    assert sum(n.is_black_key for n in notes) == 10


class TestCircleOfFifths:
    def test_order(self):
        roots = [k.root_note for k in CIRCLE_OF_FIFTHS]
        assert roots == ["C", "G", "D", "A", "E", "B", "F#", "Db", "Ab", "Eb", "Bb", "F"]
        assert [k.position for k in CIRCLE_OF_FIFTHS] == list(range(12))

    def test_key_details(self):
        g = CIRCLE_OF_FIFTHS[1]
        assert g.mode is KeyMode.MAJOR
        assert g.display_name == "G Major"
        assert g.midi_root_note == 67
        assert CIRCLE_OF_FIFTHS[7].midi_root_note == 61


def test_surface_display_names():
    assert ActivePerformanceSurface.NONE.display_name == "None"
    assert ActivePerformanceSurface.KEYS.display_name == "Keys"
    assert ActivePerformanceSurface.FIFTHS.display_name == "5ths"
    assert ActivePerformanceSurface.KEYS.is_active


def test_mpe_defaults():
    params = MPEParameters()
    assert (params.pitch_bend, params.pressure, params.timbre) == (0.0, 0.7, 0.5)
