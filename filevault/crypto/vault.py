import time

from filevault.core.config_manager import load_config
from filevault.core.exceptions import SameSourceAndDestination
from filevault.core.logging_config import vault_logger
from filevault.crypto.encrypter import Encrypter
from filevault.crypto.key import Key
from filevault.storage.manager import StorageManager

ENCRYPTED_SUFFIX = ".enc"
DECRYPTED_SUFFIX = ".dec"


class _UnclosedSink:
    """Passes writes through and leaves the wrapped stream open."""

    def __init__(self, stream):
        self._stream = stream

    def write(self, data):
        return self._stream.write(data)

    def close(self):
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()


class Vault:
    """
    Encrypts and decrypts files stored on a named disk.

        vault = Vault(Key.make()).use_disk("local")
        vault.encrypt("report.pdf")          # -> report.pdf.enc
        vault.decrypt("report.pdf.enc")      # -> report.pdf
    """

    def __init__(self, key: Key, disk=None, manager: StorageManager = None):
        self._key = key
        self._manager = manager
        self._disk = disk

    # ============================================================
    # SETTERS
    # ============================================================
    def use_disk(self, disk: str) -> "Vault":
        self._disk = disk
        return self

    def use_key(self, key: Key) -> "Vault":
        self._key = key
        return self

    @property
    def key(self) -> Key:
        return self._key

    @property
    def manager(self) -> StorageManager:
        if self._manager is None:
            self._manager = StorageManager(load_config())
        return self._manager

    @property
    def storage(self):
        return self.manager.disk(self._disk)

    # ============================================================
    # OPERATIONS
    # ============================================================
    def encrypt(self, source: str, destination: str = None, delete_source: bool = True) -> str:
        """
        Encrypt `source` into `destination` (default: source + ".enc").
        The source is deleted afterwards unless delete_source is False.
        """
        destination = destination or f"{source}{ENCRYPTED_SUFFIX}"
        self._transform("encrypt", source, destination, delete_source)
        return destination

    def decrypt(self, source: str, destination: str = None, delete_source: bool = True) -> str:
        """
        Decrypt `source` into `destination`. By default the ".enc"
        suffix is removed, or ".dec" is appended when there is none.
        """
        if destination is None:
            if source.endswith(ENCRYPTED_SUFFIX):
                destination = source[: -len(ENCRYPTED_SUFFIX)]
            else:
                destination = f"{source}{DECRYPTED_SUFFIX}"

        self._transform("decrypt", source, destination, delete_source)
        return destination

    def stream_decrypt(self, source: str, sink) -> bool:
        """Decrypt `source` into an open writable; `sink` is not closed."""
        storage = self.storage
        reader = storage.open_read(source)
        try:
            size = storage.size(source)
        except BaseException:
            reader.close()
            raise
        return Encrypter(self._key).decrypt(reader, _UnclosedSink(sink), size)

    def _transform(self, operation, source, destination, delete_source):
        start = time.perf_counter()
        storage = self.storage

        vault_logger.info(
            f"START {operation} | {source} -> {destination} | disk={self._disk or self.manager.default_disk}"
        )

        _check_distinct(storage, source, destination)

        reader = storage.open_read(source)
        try:
            size = storage.size(source)
            writer = storage.open_write(destination)
        except BaseException:
            reader.close()
            raise

        encrypter = Encrypter(self._key)
        transform = encrypter.encrypt if operation == "encrypt" else encrypter.decrypt

        if transform(reader, writer, size) and delete_source:
            storage.delete(source)
            vault_logger.info(f"Deleted source {source}")

        elapsed = time.perf_counter() - start
        vault_logger.info(f"SUCCESS {operation} | {destination} | {size} bytes | {elapsed:.2f}s")


def _check_distinct(storage, source, destination):
    """Writing over the source would truncate it before it is read."""
    if source == destination:
        raise SameSourceAndDestination(source)

    # local disks can reach one file through different names
    resolve = getattr(storage, "path", None)
    if resolve is not None and resolve(source) == resolve(destination):
        raise SameSourceAndDestination(source)
