import os

import pytest

from vcon_labeler.errors import PersistenceError
from vcon_labeler.storage import LocalFileAccess, is_audio_file, session_path_for


def test_session_path_for():
    assert session_path_for("/calls/call-01.wav") == "/calls/call-01-vcon.json"
    assert session_path_for("call.mp3", ".labels.json") == "call.labels.json"


def test_is_audio_file():
    assert is_audio_file("a.WAV")
    assert not is_audio_file("a-vcon.json")


def test_list_audio_files(tmp_path):
    for name in ("b.wav", "a.mp3", "a-vcon.json", "notes.txt"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    (tmp_path / "folder.wav").mkdir()

    found = LocalFileAccess().list_audio_files(str(tmp_path))
    assert [os.path.basename(p) for p in found] == ["a.mp3", "b.wav"]


def test_write_replaces_whole_file(tmp_path):
    access = LocalFileAccess()
    path = str(tmp_path / "sub" / "s-vcon.json")
    access.write_file(path, "first version, longer text")
    access.write_file(path, "second")
    assert access.read_file(path) == "second"
    assert [n for n in os.listdir(tmp_path / "sub")] == ["s-vcon.json"]


def test_create_file_keeps_existing_content(tmp_path):
    access = LocalFileAccess()
    path = str(tmp_path / "s-vcon.json")
    access.create_file(path)
    assert access.exists(path)
    access.write_file(path, "{}")
    access.create_file(path)
    assert access.read_file(path) == "{}"


def test_failures_raise_persistence_error(tmp_path):
    access = LocalFileAccess()
    with pytest.raises(PersistenceError):
        access.read_file(str(tmp_path / "missing.json"))
    with pytest.raises(PersistenceError):
        access.list_audio_files(str(tmp_path / "missing"))
