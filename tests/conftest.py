import pytest

from vcon_labeler.errors import PersistenceError


class MemoryFiles:
    """In-memory stand-in for LocalFileAccess."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.writes = []
        self.fail_writes = False

    def list_audio_files(self, directory):
        return sorted(ref for ref in self.files if ref.startswith(directory) and ref.endswith(".wav"))

    def exists(self, ref):
        return ref in self.files

    def read_file(self, ref):
        if ref not in self.files:
            raise PersistenceError(f"missing {ref}")
        return self.files[ref]

    def write_file(self, ref, text):
        if self.fail_writes:
            raise PersistenceError(f"disk full: {ref}")
        self.files[ref] = text
        self.writes.append(ref)

    def create_file(self, ref):
        if self.fail_writes:
            raise PersistenceError(f"read-only: {ref}")
        self.files.setdefault(ref, "")


class UnreadableFiles(MemoryFiles):
    """Files exist but every read fails."""

    def read_file(self, ref):
        raise PersistenceError(f"permission denied: {ref}")


class FakeTransport:
    def __init__(self, time=0.0, duration=10.0):
        self.time = time
        self._duration = duration
        self.seeks = []

    def current_time(self):
        return self.time

    def duration(self):
        return self._duration

    def seek(self, time):
        self.seeks.append(time)
        self.time = time


class FakeLayer:
    def __init__(self):
        self.visible = {}
        self._next = 0

    def create_visual_region(self, start, end):
        self._next += 1
        handle = f"wave-{self._next}"
        self.visible[handle] = (start, end)
        return handle

    def remove_visual_region(self, handle):
        self.visible.pop(handle, None)


@pytest.fixture
def files():
    return MemoryFiles()


@pytest.fixture
def unreadable_files():
    return UnreadableFiles()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def layer():
    return FakeLayer()
