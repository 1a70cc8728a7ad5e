"""Looping WAV playback on top of sounddevice."""

from __future__ import annotations

import io
import threading
import wave
from dataclasses import dataclass
from typing import Any

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

_SAMPLE_DTYPES = {2: "int16", 4: "int32"}


@dataclass
class AudioHandle:
    samples: Any
    sample_rate: int
    channels: int
    position: int = 0
    stream: Any = None
    disposed: bool = False

    @property
    def playing(self) -> bool:
        return self.stream is not None


def decode_wav(data: bytes) -> AudioHandle:
    """Decode a complete WAV buffer into an in-memory sample array."""
    if np is None:
        raise RuntimeError("numpy is not installed")
    with wave.open(io.BytesIO(data), "rb") as wf:
        channels = wf.getnchannels()
        sample_width = wf.getsampwidth()
        sample_rate = wf.getframerate()
        frames = wf.readframes(wf.getnframes())

    if sample_width == 1:
        # 8-bit WAV is unsigned.
        samples = (np.frombuffer(frames, dtype=np.uint8).astype(np.int16) - 128) << 8
    elif sample_width in _SAMPLE_DTYPES:
        samples = np.frombuffer(frames, dtype=_SAMPLE_DTYPES[sample_width])
    else:
        raise ValueError(f"unsupported sample width: {sample_width}")
    if samples.size == 0:
        raise ValueError("WAV data contains no frames")
    return AudioHandle(
        samples=samples.reshape(-1, channels),
        sample_rate=sample_rate,
        channels=channels,
    )


class SoundDevicePlayer:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    def load(self, data: bytes) -> AudioHandle:
        return decode_wav(data)

    def play_looping(self, handle: AudioHandle) -> None:
        with self._lock:
            if handle.disposed:
                raise RuntimeError("audio handle has been disposed")
            if handle.stream is not None:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            handle.position = 0
            stream = sd.OutputStream(
                samplerate=handle.sample_rate,
                channels=handle.channels,
                dtype=handle.samples.dtype.name,
                callback=lambda outdata, frames, time_info, status: self._on_audio(
                    handle, outdata, frames
                ),
            )
            stream.start()
            handle.stream = stream

    def stop(self, handle: AudioHandle) -> None:
        with self._lock:
            stream = handle.stream
            if stream is None:
                return
            handle.stream = None
            stream.stop()
            stream.close()

    def dispose(self, handle: AudioHandle) -> None:
        self.stop(handle)
        handle.disposed = True

    @staticmethod
    def _on_audio(handle: AudioHandle, outdata: Any, frames: int) -> None:
        samples = handle.samples
        total = len(samples)
        filled = 0
        while filled < frames:
            chunk = min(frames - filled, total - handle.position)
            outdata[filled : filled + chunk] = samples[handle.position : handle.position + chunk]
            filled += chunk
            handle.position = (handle.position + chunk) % total
