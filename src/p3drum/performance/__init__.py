"""Performance surface data for P3 Drum Machine.

The Keys keyboard and the Circle of Fifths are alternate input modes mapped
onto the session's instrument pad. Only their data lives here; sound
generation belongs to the playback engine.
"""

import math
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
# Positions of the black keys within an octave
BLACK_KEYS = {1, 3, 6, 8, 10}

# Root note name -> MIDI note in octave 4
_ROOT_MIDI = {
    "C": 60, "G": 67, "D": 62, "A": 69, "E": 64, "B": 71,
    "F#": 66, "Db": 61, "Ab": 68, "Eb": 63, "Bb": 70, "F": 65,
}  # fmt: skip


class ActivePerformanceSurface(str, Enum):
    NONE = "none"
    KEYS = "keys"
    FIFTHS = "fifths"

    @property
    def display_name(self) -> str:
        return {"none": "None", "keys": "Keys", "fifths": "5ths"}[self.value]

    @property
    def is_active(self) -> bool:
        return self is not ActivePerformanceSurface.NONE


class MusicalNote(BaseModel):
    """A key on the Keys keyboard, identified by its MIDI note number."""

    model_config = ConfigDict(frozen=True)

    midi_note: int = Field(ge=0, le=127)

    @property
    def name(self) -> str:
        """Scientific pitch name, e.g. 60 -> "C4", 61 -> "C#4"."""
        octave = self.midi_note // 12 - 1
        return f"{NOTE_NAMES[self.midi_note % 12]}{octave}"

    @property
    def is_black_key(self) -> bool:
        return self.midi_note % 12 in BLACK_KEYS

    @property
    def frequency(self) -> float:
        """Equal-tempered frequency in Hz, A4 (MIDI 69) = 440 Hz."""
        return 440.0 * math.pow(2.0, (self.midi_note - 69) / 12.0)

    @property
    def pitch_shift_semitones(self) -> float:
        """Offset from middle C (MIDI 60)."""
        return float(self.midi_note - 60)


def keyboard_notes(start: int = 48, count: int = 25) -> List[MusicalNote]:
    """Consecutive notes for the Keys surface (default: C3 to C5)."""
    return [MusicalNote(midi_note=n) for n in range(start, start + count)]


class KeyMode(str, Enum):
    MAJOR = "Major"
    MINOR = "Minor"


class CircleOfFifthsKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    root_note: str
    mode: KeyMode = KeyMode.MAJOR
    position: int = Field(ge=0, le=11)  # clockwise from C

    @property
    def display_name(self) -> str:
        return f"{self.root_note} {self.mode.value}"

    @property
    def midi_root_note(self) -> int:
        return _ROOT_MIDI.get(self.root_note, 60)


CIRCLE_OF_FIFTHS: List[CircleOfFifthsKey] = [
    CircleOfFifthsKey(root_note=root, position=i)
    for i, root in enumerate(
        ["C", "G", "D", "A", "E", "B", "F#", "Db", "Ab", "Eb", "Bb", "F"]
    )
]


class MPEParameters(BaseModel):
    """Per-note expression: pitch bend (-1..1), pressure and timbre (0..1)."""

    pitch_bend: float = Field(default=0.0, ge=-1.0, le=1.0)
    pressure: float = Field(default=0.7, ge=0.0, le=1.0)
    timbre: float = Field(default=0.5, ge=0.0, le=1.0)
