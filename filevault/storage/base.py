"""
Storage contract consumed by the vault.

A storage location ("disk") opens byte streams by name. The encrypter
only needs the small capability sets described by ByteSource and
ByteSink, so any object offering them works: local file objects,
io.BytesIO, the S3 reader/writer.
"""

from abc import ABC, abstractmethod
from typing import Protocol


class ByteSource(Protocol):
    def read(self, size: int = -1) -> bytes:
        """May return fewer bytes than requested; b"" at end of stream."""

    def seek(self, offset: int, whence: int = 0) -> int:
        ...

    def close(self) -> None:
        ...


class ByteSink(Protocol):
    def write(self, data: bytes) -> int:
        ...

    def close(self) -> None:
        ...


class Storage(ABC):
    """Abstract interface for a named storage location."""

    driver = ""

    @abstractmethod
    def open_read(self, name: str) -> ByteSource:
        """
        Open `name` for reading.

        Raises:
            FileNotFound: the name does not exist
            StreamOpenFailure: any other open error
        """

    @abstractmethod
    def open_write(self, name: str) -> ByteSink:
        """Open `name` for writing, replacing existing content."""

    @abstractmethod
    def size(self, name: str) -> int:
        """Size in bytes. Raises MetadataUnavailable."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Raises DeleteFileFailure."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        pass

    def __repr__(self):
        return f"{type(self).__name__}(driver={self.driver!r})"
