"""File and directory access for audio sources and session files."""

from __future__ import annotations

import os
import tempfile
from typing import List

from .errors import PersistenceError

AUDIO_EXTS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".webm", ".aac"}
SESSION_SUFFIX = "-vcon.json"


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def is_audio_file(path: str) -> bool:
    _, ext = os.path.splitext(path)
    return ext.lower() in AUDIO_EXTS


def session_path_for(audio_path: str, suffix: str = SESSION_SUFFIX) -> str:
    base, _ = os.path.splitext(audio_path)
    return f"{base}{suffix}"


def _atomic_write_text(path: str, text: str) -> None:
    folder = os.path.dirname(path) or "."
    ensure_dir(folder)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


class LocalFileAccess:
    """Filesystem-backed file access. All failures surface as PersistenceError."""

    def list_audio_files(self, directory: str) -> List[str]:
        try:
            names = sorted(os.listdir(directory))
        except OSError as exc:
            raise PersistenceError(f"Cannot list {directory}: {exc}") from exc
        return [
            os.path.join(directory, name)
            for name in names
            if is_audio_file(name) and os.path.isfile(os.path.join(directory, name))
        ]

    def exists(self, ref: str) -> bool:
        return os.path.isfile(ref)

    def read_file(self, ref: str) -> str:
        try:
            with open(ref, "r", encoding="utf-8") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read {ref}: {exc}") from exc

    def write_file(self, ref: str, text: str) -> None:
        try:
            _atomic_write_text(ref, text)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {ref}: {exc}") from exc

    def create_file(self, ref: str) -> None:
        try:
            ensure_dir(os.path.dirname(ref) or ".")
            with open(ref, "a", encoding="utf-8"):
                pass
        except OSError as exc:
            raise PersistenceError(f"Cannot create {ref}: {exc}") from exc
