"""
Runtime session state.

SessionManager is the single mutable point of truth while the app runs: it
holds the active session, the sample library, the cached session listing
and transient performance state (active surface, instrument pad, step
counter, recording flag). Mutations go through the Session model and are
persisted through the SessionStore it was constructed with.

Failures never raise out of the manager. They are logged, kept in
``last_error`` as a readable message, and the call returns False/None with
the previous state left intact.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional
from uuid import UUID

from p3drum.audio.waveform import probe_wav
from p3drum.performance import ActivePerformanceSurface
from p3drum.schemas.p3_config import P3Config
from p3drum.schemas.session import (
    Pad,
    PadMode,
    Recording,
    Sample,
    SampleCollection,
    Session,
    SessionSummary,
    StylePreset,
    VisualSettings,
    clamp_bpm,
)
from p3drum.storage import SessionStore, StorageError

logger = logging.getLogger(__name__)

# Steps in the sequencer cycle (one bar of 16th notes)
STEPS_PER_CYCLE = 16


class SessionManager:
    def __init__(self, store: SessionStore, config: P3Config | None = None):
        self.store = store
        self.config: P3Config = config or P3Config()

        self.current_session: Optional[Session] = None
        self.sessions: List[SessionSummary] = []
        self.sample_library: List[SampleCollection] = []

        # Transient performance state, never persisted
        self.active_performance_surface = ActivePerformanceSurface.NONE
        self.active_instrument_pad_id: Optional[UUID] = None
        self.bpm: float = self.config.session.bpm
        self.current_step = 0
        self.is_recording = False

        self.last_error: Optional[str] = None

        self._setup_default_sample_library()
        self.refresh_sessions()

    def _fail(self, message: str) -> None:
        self.last_error = message
        logger.error(message)

    def _no_session(self, action: str) -> None:
        self.last_error = f"No active session to {action}"
        logger.warning(self.last_error)

    # --- Session lifecycle ---

    def new_session(
        self,
        name: str | None = None,
        rows: int | None = None,
        columns: int | None = None,
    ) -> Session:
        """Create a session with a fresh pad grid and make it current. Not saved."""
        defaults = self.config.session
        session = Session(
            name=name or defaults.name,
            bpm=defaults.bpm,
            rows=defaults.rows if rows is None else rows,
            columns=defaults.columns if columns is None else columns,
        )
        self.current_session = session
        self.bpm = session.bpm
        self.active_instrument_pad_id = None
        return session

    def open_session(self, session_id: UUID) -> bool:
        try:
            session = self.store.load_session(session_id)
        except StorageError as e:
            self._fail(f"Failed to open session: {e}")
            return False
        self.current_session = session
        self.bpm = session.bpm
        self.active_instrument_pad_id = session.active_instrument_pad_id
        self.last_error = None
        logger.info("Opened session: %s", session.name)
        return True

    def save_current_session(self) -> bool:
        session = self.current_session
        if session is None:
            self._no_session("save")
            return False
        try:
            self.store.save_session(session)
        except StorageError as e:
            self._fail(f"Failed to save session: {e}")
            return False
        self.last_error = None
        self.refresh_sessions()
        return True

    def delete_session(self, session_id: UUID) -> bool:
        try:
            self.store.delete_session(session_id)
        except StorageError as e:
            self._fail(f"Failed to delete session: {e}")
            return False
        self.sessions = [s for s in self.sessions if s.id != session_id]
        return True

    def close_current_session(self) -> bool:
        """Save, then clear the session and the performance state.

        If the save fails the session stays open so nothing is lost.
        """
        if self.current_session is not None and not self.save_current_session():
            return False
        self.current_session = None
        self.active_performance_surface = ActivePerformanceSurface.NONE
        self.active_instrument_pad_id = None
        return True

    def refresh_sessions(self) -> List[SessionSummary]:
        try:
            self.sessions = self.store.list_sessions()
        except StorageError as e:
            self._fail(f"Failed to load sessions: {e}")
            self.sessions = []
        else:
            logger.info("Loaded %d session(s)", len(self.sessions))
        return self.sessions

    # --- Pads ---

    def pad_with_id(self, pad_id: UUID) -> Optional[Pad]:
        if self.current_session is None:
            return None
        return self.current_session.pad_with_id(pad_id)

    def update_pad(self, pad_id: UUID, **changes: Any) -> Optional[Pad]:
        if self.current_session is None:
            return None
        try:
            return self.current_session.update_pad(pad_id, **changes)
        except (AttributeError, ValueError) as e:
            self._fail(f"Invalid pad update: {e}")
            return None

    def replace_pad(self, pad: Pad) -> bool:
        if self.current_session is None:
            return False
        return self.current_session.replace_pad(pad)

    def assign_sample(self, sample: Optional[Sample], pad_id: UUID) -> Optional[Pad]:
        return self.update_pad(pad_id, sample=sample)

    def set_pad_mode(self, mode: PadMode, pad_id: UUID) -> Optional[Pad]:
        return self.update_pad(pad_id, mode=mode)

    def set_active_instrument(self, pad_id: Optional[UUID]):
        """Pad that the Keys / 5ths surfaces play through."""
        self.active_instrument_pad_id = pad_id
        if self.current_session is not None:
            self.current_session.active_instrument_pad_id = pad_id

    def resize_grid(self, rows: int, columns: int):
        """Resize the active grid. Pads outside the new size are dropped."""
        if self.current_session is not None:
            self.current_session.resize(rows, columns)

    # --- Tempo ---

    def set_bpm(self, bpm: float) -> bool:
        try:
            self.bpm = clamp_bpm(bpm)
        except ValueError as e:
            self._fail(f"Invalid BPM: {e}")
            return False
        if self.current_session is not None:
            self.current_session.set_bpm(self.bpm)
        return True

    def adjust_bpm(self, delta: float) -> bool:
        return self.set_bpm(self.bpm + delta)

    def sixteenth_note_duration(self) -> float:
        """Seconds per 16th note at the current tempo."""
        return 60.0 / (self.bpm * 4.0)

    def advance_step(self) -> int:
        self.current_step = (self.current_step + 1) % STEPS_PER_CYCLE
        return self.current_step

    # --- Performance surfaces ---

    def show_keys(self):
        self.active_performance_surface = ActivePerformanceSurface.KEYS

    def show_fifths(self):
        self.active_performance_surface = ActivePerformanceSurface.FIFTHS

    def hide_performance_surface(self):
        self.active_performance_surface = ActivePerformanceSurface.NONE

    def toggle_keys(self):
        if self.active_performance_surface is ActivePerformanceSurface.KEYS:
            self.hide_performance_surface()
        else:
            self.show_keys()

    def toggle_fifths(self):
        if self.active_performance_surface is ActivePerformanceSurface.FIFTHS:
            self.hide_performance_surface()
        else:
            self.show_fifths()

    # --- Visual settings ---

    def update_visual_settings(self, settings: VisualSettings):
        if self.current_session is not None:
            self.current_session.visual_settings = settings
            self.current_session.touch()

    def set_tint_color(self, hex_color: str) -> bool:
        if self.current_session is None:
            return False
        try:
            self.current_session.visual_settings.set_tint_color(hex_color)
        except ValueError as e:
            self._fail(f"Invalid tint color: {e}")
            return False
        self.current_session.touch()
        return True

    def adjust_brightness(self, delta: float):
        if self.current_session is not None:
            self.current_session.visual_settings.adjust_brightness(delta)
            self.current_session.touch()

    def set_style_preset(self, preset: StylePreset):
        if self.current_session is not None:
            self.current_session.visual_settings.style_preset = preset
            self.current_session.touch()

    # --- Sample library ---

    def _setup_default_sample_library(self):
        library = self.config.library
        self.sample_library = [
            SampleCollection(name=name) for name in library.default_collections
        ]
        self.sample_library.append(
            SampleCollection(name=library.user_imports, is_user_collection=True)
        )

    def collection_named(self, name: str) -> Optional[SampleCollection]:
        for collection in self.sample_library:
            if collection.name == name:
                return collection
        return None

    def _collection(self, collection_id: UUID) -> Optional[SampleCollection]:
        for collection in self.sample_library:
            if collection.id == collection_id:
                return collection
        return None

    def create_collection(self, name: str) -> SampleCollection:
        collection = SampleCollection(name=name, is_user_collection=True)
        self.sample_library.append(collection)
        return collection

    def add_sample(self, sample: Sample, collection_id: UUID) -> bool:
        collection = self._collection(collection_id)
        if collection is None:
            return False
        collection.add(sample)
        return True

    def remove_sample(self, sample_id: UUID, collection_id: UUID) -> bool:
        collection = self._collection(collection_id)
        if collection is None:
            return False
        collection.remove(sample_id)
        return True

    def import_audio_file(self, path: str | Path) -> Optional[Sample]:
        """Copy an audio file into the active session and add it to User Imports."""
        session = self.current_session
        if session is None:
            self._no_session("import into")
            return None

        source = Path(path)
        try:
            destination = self.store.import_audio_file(
                source, session.id, name=source.name
            )
        except StorageError as e:
            self._fail(f"Failed to import audio: {e}")
            return None

        duration, waveform = probe_wav(destination)
        sample = Sample(
            name=source.stem,
            file_path=destination,
            duration=duration,
            waveform_data=waveform,
        )

        user_imports = self.config.library.user_imports
        collection = self.collection_named(user_imports)
        if collection is None:
            collection = self.create_collection(user_imports)
        collection.add(sample)

        self.last_error = None
        logger.info("Imported audio: %s", sample.name)
        return sample

    # --- Recording ---

    def start_recording(self):
        self.is_recording = True
        logger.info("Recording started")

    def stop_recording(
        self,
        filename: str | None = None,
        duration: float = 0.0,
        name: str | None = None,
    ) -> Optional[Recording]:
        """Stop recording; with a filename, attach the take to the active session."""
        self.is_recording = False
        logger.info("Recording stopped")
        session = self.current_session
        if filename is None or session is None:
            return None
        recording = Recording(
            name=name or Path(filename).stem,
            file_path=self.store.recording_file_path(session.id, filename),
            duration=duration,
        )
        session.add_recording(recording)
        return recording
