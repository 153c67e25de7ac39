"""
Pydantic models for sessions and the sample library.

Session JSON structure (keys sorted, unset optional fields omitted):
{
  "bpm": 102.0,
  "columns": 8,
  "createdAt": "2025-11-22T10:00:00Z",
  "id": "6f1c…",
  "modifiedAt": "2025-11-22T10:05:00Z",
  "name": "New Session",
  "pads": [
    {
      "column": 0, "delayFeedback": 0.3, "delayMix": 0.5, "delayTime": 0.25,
      "filterEnabled": false, "id": "…", "isLooping": false, "mode": "tap",
      "pan": 0.0, "row": 0, "volume": 1.0,
      "sample": {"fileURL": "/path/kick.wav", "id": "…", "name": "Kick"}
    }
  ],
  "recordings": [],
  "rows": 5,
  "visualSettings": {"brightness": 1.0, "stylePreset": "Default", "tintColorHex": "#FFFFFF"}
}

Python attributes are snake_case; the camelCase names above are aliases.
"isPlaying" is runtime state only: never written, and reset on every load.
"""

import base64
import json
import math
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, List, Optional
from uuid import UUID, uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

MIN_BPM = 20.0
MAX_BPM = 300.0
DEFAULT_BPM = 102.0

LOOP_REPEAT_OPTIONS = (2, 4, 6, 12, 24)

# Pad fields that define identity and grid position
_FIXED_PAD_FIELDS = {"id", "row", "column"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _assume_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


def _decode_waveform(value: Any) -> Any:
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


WaveformBytes = Annotated[
    bytes,
    BeforeValidator(_decode_waveform),
    PlainSerializer(
        lambda b: base64.b64encode(b).decode("ascii"), return_type=str, when_used="json"
    ),
]


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


# --- Samples ---


class Sample(_Model):
    """Reference to an audio file on disk. Equality and hashing use ``id`` only."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    file_path: Path = Field(alias="fileURL")
    duration: Optional[float] = Field(default=None, ge=0)
    waveform_data: Optional[WaveformBytes] = None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Sample):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)


class SampleCollection(_Model):
    id: UUID = Field(default_factory=uuid4)
    name: str
    samples: List[Sample] = []
    is_user_collection: bool = False

    def add(self, sample: Sample):
        """Append a sample. A sample whose id is already present is ignored."""
        if any(s.id == sample.id for s in self.samples):
            return
        self.samples.append(sample)

    def remove(self, sample_id: UUID):
        self.samples = [s for s in self.samples if s.id != sample_id]

    def replace(self, sample_id: UUID, new_sample: Sample):
        """Swap the sample with ``sample_id`` for ``new_sample``; no-op if absent."""
        for i, s in enumerate(self.samples):
            if s.id == sample_id:
                self.samples[i] = new_sample
                return


# --- Pads ---


class PadMode(str, Enum):
    TAP = "tap"  # one-shot playback
    LOOP = "loop"  # quantized looping
    FILTER = "filter"  # delay effect
    MIC = "mic"  # microphone recording
    EDIT = "edit"  # reassign sample
    VOLUME = "volume"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    def next(self) -> "PadMode":
        members = list(PadMode)
        return members[(members.index(self) + 1) % len(members)]


class Pad(_Model):
    id: UUID = Field(default_factory=uuid4)
    sample: Optional[Sample] = None
    mode: PadMode = PadMode.TAP
    volume: float = Field(default=1.0, ge=0.0, le=1.0)
    pan: float = Field(default=0.0, ge=-1.0, le=1.0)  # -1 left, 1 right

    # Loop mode
    is_looping: bool = False
    loop_repeat_count: Optional[int] = None  # None = infinite

    # Filter mode
    filter_enabled: bool = False
    delay_time: float = Field(default=0.25, ge=0.0)  # seconds
    delay_feedback: float = Field(default=0.3, ge=0.0, le=1.0)
    delay_mix: float = Field(default=0.5, ge=0.0, le=1.0)

    is_playing: bool = Field(default=False, exclude=True)

    row: int = Field(ge=0)
    column: int = Field(ge=0)

    @field_validator("loop_repeat_count")
    @classmethod
    def _check_repeat_count(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in LOOP_REPEAT_OPTIONS:
            raise ValueError(
                f"loop repeat count must be one of {LOOP_REPEAT_OPTIONS} or unset, got {v}"
            )
        return v

    @property
    def is_empty(self) -> bool:
        return self.sample is None

    @property
    def display_name(self) -> str:
        return self.sample.name if self.sample is not None else "Empty"

    @property
    def loop_repeat_display(self) -> str:
        if self.loop_repeat_count is None:
            return "∞"
        return str(self.loop_repeat_count)


def build_grid(rows: int, columns: int) -> List[Pad]:
    """Fresh row-major pad grid."""
    return [Pad(row=r, column=c) for r in range(rows) for c in range(columns)]


# --- Visual settings ---


class StylePreset(str, Enum):
    DEFAULT = "Default"
    MINIMAL = "Minimal"
    NEON = "Neon"
    RETRO = "Retro"
    CYBER = "Cyber"

    @property
    def description(self) -> str:
        return _PRESET_STYLE[self][0]

    @property
    def primary_color_hex(self) -> str:
        return _PRESET_STYLE[self][1]

    @property
    def accent_opacity(self) -> float:
        return _PRESET_STYLE[self][2]


# preset -> (description, primary color, accent opacity)
_PRESET_STYLE = {
    StylePreset.DEFAULT: ("Clean monochromatic design", "#FFFFFF", 1.0),
    StylePreset.MINIMAL: ("Ultra-minimal interface", "#808080", 0.6),
    StylePreset.NEON: ("Bright neon accents", "#00FF00", 1.0),
    StylePreset.RETRO: ("Vintage aesthetic", "#FFA500", 0.8),
    StylePreset.CYBER: ("Cyberpunk vibes", "#00FFFF", 0.9),
}


def normalize_hex_color(value: str) -> str:
    """Normalize "#RGB", "#RRGGBB" or "#AARRGGBB" to upper-case "#…" form.

    Examples:
        normalize_hex_color("0f0")       -> "#00FF00"
        normalize_hex_color("#ff8800")   -> "#FF8800"
        normalize_hex_color("#80FFFFFF") -> "#80FFFFFF"
    """
    digits = value.strip().lstrip("#")
    if not digits or any(ch not in "0123456789abcdefABCDEF" for ch in digits):
        raise ValueError(f"not a hex color: {value!r}")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    elif len(digits) not in (6, 8):
        raise ValueError(f"hex color must have 3, 6 or 8 digits: {value!r}")
    return "#" + digits.upper()


class VisualSettings(_Model):
    tint_color_hex: str = "#FFFFFF"
    brightness: float = Field(default=1.0, ge=0.0, le=1.0)
    artwork_url: Optional[str] = Field(default=None, alias="artworkURL")
    artwork_prompt: Optional[str] = None
    style_preset: StylePreset = StylePreset.DEFAULT

    @field_validator("tint_color_hex")
    @classmethod
    def _normalize_tint(cls, v: str) -> str:
        return normalize_hex_color(v)

    def set_tint_color(self, hex_color: str):
        self.tint_color_hex = hex_color

    def adjust_brightness(self, delta: float):
        self.brightness = min(max(self.brightness + delta, 0.0), 1.0)


# --- Recordings ---


class Recording(_Model):
    id: UUID = Field(default_factory=uuid4)
    name: str
    file_path: Path = Field(alias="fileURL")
    duration: float = Field(ge=0)
    created_at: UtcDatetime = Field(default_factory=utcnow)


# --- Sessions ---


class Session(_Model):
    """A saved project: pad grid, tempo, theme and recordings.

    ``pads`` always holds exactly one pad per ``(row, column)`` of the grid.
    When ``pads`` is not given a fresh grid is built from ``rows`` and
    ``columns``.
    """

    model_config = ConfigDict(validate_assignment=False)

    id: UUID = Field(default_factory=uuid4)
    name: str = "New Session"
    bpm: float = Field(default=DEFAULT_BPM, ge=MIN_BPM, le=MAX_BPM, allow_inf_nan=False)
    created_at: UtcDatetime = Field(default_factory=utcnow)
    modified_at: UtcDatetime = Field(default_factory=utcnow)

    rows: int = Field(default=5, ge=0)
    columns: int = Field(default=8, ge=0)
    pads: List[Pad] = []

    visual_settings: VisualSettings = Field(default_factory=VisualSettings)

    active_instrument_pad_id: Optional[UUID] = Field(
        default=None, alias="activeInstrumentPadID"
    )
    recordings: List[Recording] = []

    @model_validator(mode="after")
    def _check_grid(self) -> "Session":
        if "pads" not in self.model_fields_set:
            self.pads = build_grid(self.rows, self.columns)
            return self
        positions = {(p.row, p.column) for p in self.pads}
        expected = {(r, c) for r in range(self.rows) for c in range(self.columns)}
        if len(self.pads) != self.rows * self.columns or positions != expected:
            raise ValueError(
                f"pads do not cover the {self.rows}x{self.columns} grid exactly once"
            )
        return self

    @property
    def total_pads(self) -> int:
        return self.rows * self.columns

    @property
    def assigned_pads(self) -> List[Pad]:
        return [p for p in self.pads if not p.is_empty]

    @property
    def empty_pads(self) -> List[Pad]:
        return [p for p in self.pads if p.is_empty]

    def touch(self):
        self.modified_at = utcnow()

    # --- Pad access ---

    def pad_at(self, row: int, column: int) -> Optional[Pad]:
        for pad in self.pads:
            if pad.row == row and pad.column == column:
                return pad
        return None

    def pad_with_id(self, pad_id: UUID) -> Optional[Pad]:
        for pad in self.pads:
            if pad.id == pad_id:
                return pad
        return None

    def _pad_index(self, pad_id: UUID) -> Optional[int]:
        for i, pad in enumerate(self.pads):
            if pad.id == pad_id:
                return i
        return None

    def update_pad(self, pad_id: UUID, **changes: Any) -> Optional[Pad]:
        """Apply ``changes`` to the pad with ``pad_id`` and bump ``modified_at``.

        The changes are validated on a copy which then replaces the stored
        pad, so a rejected value leaves the session untouched. Returns the
        updated pad, or None (without touching the timestamp) if no pad has
        that id.

        Example:
            session.update_pad(pad.id, volume=0.5, mode=PadMode.LOOP)
        """
        index = self._pad_index(pad_id)
        if index is None:
            return None
        updated = self.pads[index].model_copy(deep=True)
        for field, value in changes.items():
            if field not in Pad.model_fields or field in _FIXED_PAD_FIELDS:
                raise AttributeError(f"Pad field '{field}' cannot be updated")
            setattr(updated, field, value)
        self.pads[index] = updated
        self.touch()
        return updated

    def replace_pad(self, pad: Pad) -> bool:
        """Store ``pad`` in place of the pad with the same id."""
        index = self._pad_index(pad.id)
        if index is None:
            return False
        self.pads[index] = pad
        self.touch()
        return True

    # --- Grid ---

    def resize(self, rows: int, columns: int):
        """Rebuild the grid as ``rows`` x ``columns``.

        Pads whose position is still inside the grid are kept as they are
        (id, sample and settings). Pads that fall outside the new bounds are
        discarded along with their sample assignments.
        """
        if rows < 0 or columns < 0:
            raise ValueError(f"grid size must be non-negative, got {rows}x{columns}")
        by_position = {(p.row, p.column): p for p in self.pads}
        self.pads = [
            by_position.get((r, c)) or Pad(row=r, column=c)
            for r in range(rows)
            for c in range(columns)
        ]
        self.rows = rows
        self.columns = columns
        self.touch()

    # --- Tempo ---

    def set_bpm(self, bpm: float):
        self.bpm = clamp_bpm(bpm)
        self.touch()

    def adjust_bpm(self, delta: float):
        self.set_bpm(self.bpm + delta)

    # --- Recordings ---

    def add_recording(self, recording: Recording):
        self.recordings.append(recording)
        self.touch()

    # --- Serialization ---

    def to_json(self) -> str:
        """Canonical JSON: sorted keys, 2-space indent, unset optionals omitted."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str | bytes) -> "Session":
        """Decode a session file. Every pad comes back with ``is_playing`` False."""
        session = cls.model_validate_json(text)
        for pad in session.pads:
            pad.is_playing = False
        return session


def clamp_bpm(bpm: float) -> float:
    """Clamp to MIN_BPM..MAX_BPM. NaN and infinities raise ValueError."""
    bpm = float(bpm)
    if not math.isfinite(bpm):
        raise ValueError(f"BPM must be a finite number, got {bpm}")
    return min(max(bpm, MIN_BPM), MAX_BPM)


class SessionSummary(_Model):
    """Listing row for a saved session."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: UUID
    name: str
    created_at: UtcDatetime
    modified_at: UtcDatetime
    bpm: float
    assigned_pads_count: int

    @classmethod
    def from_session(cls, session: Session) -> "SessionSummary":
        return cls(
            id=session.id,
            name=session.name,
            created_at=session.created_at,
            modified_at=session.modified_at,
            bpm=session.bpm,
            assigned_pads_count=len(session.assigned_pads),
        )
