import os
from pathlib import Path

from filevault.core.exceptions import (
    FileNotFound,
    StreamOpenFailure,
    MetadataUnavailable,
    DeleteFileFailure,
)
from filevault.storage.base import Storage


class LocalStorage(Storage):
    """Files under a root directory on the local filesystem."""

    driver = "local"

    def __init__(self, root):
        self.root = Path(root).expanduser().resolve()

    def path(self, name: str) -> Path:
        """
        Prefix `name` with the root. Names resolving outside the
        root are rejected.
        """
        path = (self.root / str(name).lstrip("\\/")).resolve()
        if path != self.root and self.root not in path.parents:
            raise StreamOpenFailure(name, "path escapes the storage root")
        return path

    def open_read(self, name):
        path = self.path(name)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            raise FileNotFound(name) from None
        except OSError as e:
            raise StreamOpenFailure(name, e.strerror or str(e)) from e

    def open_write(self, name):
        path = self.path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return open(path, "wb")
        except OSError as e:
            raise StreamOpenFailure(name, e.strerror or str(e)) from e

    def size(self, name):
        try:
            return os.path.getsize(self.path(name))
        except OSError as e:
            raise MetadataUnavailable(name, e.strerror or str(e)) from e

    def delete(self, name):
        try:
            self.path(name).unlink()
        except OSError as e:
            raise DeleteFileFailure(name, e.strerror or str(e)) from e

    def exists(self, name):
        try:
            return self.path(name).is_file()
        except StreamOpenFailure:
            return False

    def __repr__(self):
        return f"LocalStorage(root={str(self.root)!r})"
