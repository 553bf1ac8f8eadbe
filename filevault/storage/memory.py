import io
import threading

from filevault.core.exceptions import FileNotFound, MetadataUnavailable, DeleteFileFailure
from filevault.storage.base import Storage


class _MemoryWriter(io.BytesIO):
    """Buffer that stores its content under `name` when closed."""

    def __init__(self, storage, name):
        super().__init__()
        self._storage = storage
        self._name = name

    def close(self):
        if not self.closed:
            self._storage.put(self._name, self.getvalue())
        super().close()


class InMemoryStorage(Storage):
    driver = "memory"

    def __init__(self, files=None):
        self._files = dict(files or {})
        self._lock = threading.Lock()

    def put(self, name, data: bytes):
        with self._lock:
            self._files[name] = bytes(data)

    def get(self, name) -> bytes:
        with self._lock:
            try:
                return self._files[name]
            except KeyError:
                raise FileNotFound(name) from None

    def names(self):
        with self._lock:
            return sorted(self._files)

    def open_read(self, name):
        return io.BytesIO(self.get(name))

    def open_write(self, name):
        return _MemoryWriter(self, name)

    def size(self, name):
        try:
            return len(self.get(name))
        except FileNotFound as e:
            raise MetadataUnavailable(name, "file does not exist") from e

    def delete(self, name):
        with self._lock:
            if self._files.pop(name, None) is None:
                raise DeleteFileFailure(name, "file does not exist")

    def exists(self, name):
        with self._lock:
            return name in self._files
