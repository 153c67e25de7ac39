"""
Shared fixtures for the test suite.

Every test gets its own storage root under ``tmp_path`` so nothing touches
the real per-user data directory.
"""

import wave
from pathlib import Path

import numpy as np
import pytest

from p3drum.schemas.p3_config import P3Config
from p3drum.session.manager import SessionManager
from p3drum.storage import SessionStore

# ---------------------------------------------------------------------------
# WAV helper
# ---------------------------------------------------------------------------


def write_wav(path: Path, frames: np.ndarray, rate: int = 8000) -> Path:
    """Write float frames (-1..1, shape (n,) or (n, channels)) as 16-bit PCM."""
    frames = np.asarray(frames, dtype=np.float32)
    channels = 1 if frames.ndim == 1 else frames.shape[1]
    pcm = (np.clip(frames, -1.0, 1.0) * 32767).astype("<i2")
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(rate)
        wf.writeframes(pcm.tobytes())
    return path


def sine(seconds: float, rate: int = 8000, freq: float = 220.0, amp: float = 0.5):
    t = np.arange(int(seconds * rate)) / rate
    return (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)


# ---------------------------------------------------------------------------
# Store / manager fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def base_dir(tmp_path) -> Path:
    return tmp_path / "P3DrumMachine"


@pytest.fixture()
def store(base_dir) -> SessionStore:
    return SessionStore(base_dir)


@pytest.fixture()
def manager(store) -> SessionManager:
    return SessionManager(store, P3Config())


@pytest.fixture()
def kick_wav(tmp_path) -> Path:
    """Half a second of 16-bit mono audio at 8 kHz."""
    return write_wav(tmp_path / "kick.wav", sine(0.5))


@pytest.fixture()
def isolated_config(tmp_path, monkeypatch):
    """Keep load_config() away from the real XDG config and working directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
