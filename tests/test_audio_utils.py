import wave

import numpy as np
import pytest

from vcon_labeler.audio_utils import export_region_audio, probe_wav


def _write_stereo(path, seconds=2.0, rate=8000):
    frames = int(seconds * rate)
    left = np.full(frames, 1000, dtype=np.int16)
    right = np.full(frames, -2000, dtype=np.int16)
    data = np.stack([left, right], axis=1)
    with wave.open(path, "wb") as handle:
        handle.setnchannels(2)
        handle.setsampwidth(2)
        handle.setframerate(rate)
        handle.writeframes(data.tobytes())


def test_probe_wav(tmp_path):
    path = str(tmp_path / "call.wav")
    _write_stereo(path, seconds=2.0)
    info = probe_wav(path)
    assert info.channels == 2
    assert info.duration == pytest.approx(2.0)


def test_export_single_channel_region(tmp_path):
    src = str(tmp_path / "call.wav")
    out = str(tmp_path / "clip.wav")
    _write_stereo(src)

    written = export_region_audio(src, out, 0.5, 1.5, [1])

    assert written == pytest.approx(1.0)
    with wave.open(out, "rb") as handle:
        assert handle.getnchannels() == 1
        samples = np.frombuffer(handle.readframes(handle.getnframes()), dtype=np.int16)
    assert samples.shape[0] == 8000
    assert set(samples.tolist()) == {-2000}


def test_export_rejects_region_outside_audio(tmp_path):
    src = str(tmp_path / "call.wav")
    _write_stereo(src, seconds=1.0)
    with pytest.raises(ValueError):
        export_region_audio(src, str(tmp_path / "clip.wav"), 5.0, 6.0)
