"""Audio helpers."""

from __future__ import annotations

import wave
from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass
class AudioInfo:
    channels: int
    sample_rate_hz: int
    frames: int

    @property
    def duration(self) -> float:
        if not self.sample_rate_hz:
            return 0.0
        return self.frames / float(self.sample_rate_hz)


def probe_wav(path: str) -> AudioInfo:
    with wave.open(path, "rb") as handle:
        return AudioInfo(
            channels=handle.getnchannels(),
            sample_rate_hz=handle.getframerate(),
            frames=handle.getnframes(),
        )


def export_region_audio(
    input_path: str,
    output_path: str,
    start: float,
    end: float,
    channels_to_keep: Optional[List[int]] = None,
) -> float:
    """Write [start, end] of the selected channels to a new WAV.

    Returns the duration written, in seconds.
    """
    with wave.open(input_path, "rb") as handle:
        channels = handle.getnchannels()
        sampwidth = handle.getsampwidth()
        framerate = handle.getframerate()
        frames = handle.getnframes()

        if sampwidth != 2:
            raise ValueError("Only 16-bit PCM is supported for region export.")

        raw = handle.readframes(frames)

    data = np.frombuffer(raw, dtype=np.int16).reshape(-1, channels)

    first = max(0, int(round(start * framerate)))
    last = min(data.shape[0], int(round(end * framerate)))
    if last <= first:
        raise ValueError(f"Region [{start}, {end}] is outside the audio.")

    keep = [idx for idx in (channels_to_keep or range(channels)) if 0 <= idx < channels]
    if not keep:
        raise ValueError("No valid channels selected.")

    sliced = np.ascontiguousarray(data[first:last, keep])

    with wave.open(output_path, "wb") as out:
        out.setnchannels(len(keep))
        out.setsampwidth(2)
        out.setframerate(framerate)
        out.writeframes(sliced.tobytes())
    return (last - first) / float(framerate)
