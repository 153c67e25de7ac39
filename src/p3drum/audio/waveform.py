"""
WAV probing for imported samples.

Decodes PCM frames with numpy to work out a sample's duration and a compact
peak overview used to draw its waveform. Nothing here plays audio.
"""

import logging
import wave
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

WAVEFORM_POINTS = 64


def decode_pcm(raw_data: bytes, width: int) -> np.ndarray:
    """Convert interleaved PCM bytes to float32 in -1..1."""
    if width == 2:
        # 16-bit
        audio_int16 = np.frombuffer(raw_data, dtype=np.int16)
        return audio_int16.astype(np.float32) / 32768.0
    elif width == 1:
        # 8-bit unsigned
        audio_uint8 = np.frombuffer(raw_data, dtype=np.uint8)
        return (audio_uint8.astype(np.float32) - 128.0) / 128.0
    elif width == 3:
        # 24-bit signed
        raw_bytes = np.frombuffer(raw_data, dtype=np.uint8)
        chunks = raw_bytes.reshape(-1, 3)
        padded = np.pad(chunks, ((0, 0), (1, 0)), mode="constant")
        audio_int32 = np.frombuffer(padded.tobytes(), dtype="<i4")
        return audio_int32.astype(np.float32) / 2147483648.0
    elif width == 4:
        # 32-bit signed
        audio_int32 = np.frombuffer(raw_data, dtype="<i4")
        return audio_int32.astype(np.float32) / 2147483648.0
    raise ValueError(f"Unsupported bit depth: {width * 8}-bit")


def load_wav(file_path: str | Path) -> tuple[np.ndarray, int]:
    """Load a WAV file as mono float32 frames. Returns (frames, sample_rate)."""
    with wave.open(str(file_path), "rb") as wf:
        channels = wf.getnchannels()
        rate = wf.getframerate()
        width = wf.getsampwidth()
        raw_data = wf.readframes(wf.getnframes())

    audio = decode_pcm(raw_data, width)
    if channels > 1:
        audio = audio.reshape(-1, channels).mean(axis=1)
    return audio.astype(np.float32), rate


def peak_overview(frames: np.ndarray, points: int = WAVEFORM_POINTS) -> bytes:
    """Peak amplitude of ``points`` equal slices, one unsigned byte each."""
    if len(frames) == 0:
        return bytes(points)
    peaks = np.array(
        [
            float(np.abs(chunk).max()) if len(chunk) else 0.0
            for chunk in np.array_split(frames, points)
        ]
    )
    return np.clip(np.round(peaks * 255.0), 0, 255).astype(np.uint8).tobytes()


def probe_wav(
    file_path: str | Path, points: int = WAVEFORM_POINTS
) -> tuple[float | None, bytes | None]:
    """Duration in seconds and waveform overview, or (None, None) if unreadable."""
    try:
        frames, rate = load_wav(file_path)
    except (wave.Error, EOFError, OSError, ValueError) as e:
        logger.debug("Could not probe %s: %s", file_path, e)
        return None, None
    duration = len(frames) / rate if rate else None
    return duration, peak_overview(frames, points)
