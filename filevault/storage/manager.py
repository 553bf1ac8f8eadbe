import boto3

from filevault.core.config_manager import get_value
from filevault.core.exceptions import DiskNotConfigured
from filevault.core.logging_config import storage_logger
from filevault.storage.base import Storage
from filevault.storage.local import LocalStorage
from filevault.storage.memory import InMemoryStorage
from filevault.storage.s3 import S3Storage


def _create_local(options: dict) -> Storage:
    root = options.get("root")
    if not root:
        raise DiskNotConfigured("Local disk requires a 'root' directory")
    return LocalStorage(root)


def _create_memory(options: dict) -> Storage:
    return InMemoryStorage()


def _create_s3(options: dict) -> Storage:
    client = boto3.client(
        "s3",
        region_name=options.get("region") or None,
        endpoint_url=options.get("endpoint") or None,
        aws_access_key_id=options.get("key") or None,
        aws_secret_access_key=options.get("secret") or None,
    )
    return S3Storage(options.get("bucket"), options.get("prefix") or "", client=client)


DRIVERS = {
    "local": _create_local,
    "memory": _create_memory,
    "s3": _create_s3,
}


class StorageManager:
    """
    Resolves disk names to storage adapters from the "disks" config table.
    Adapters are created on first use and reused afterwards.
    """

    def __init__(self, config: dict):
        self.config = config
        self._disks = {}

    @property
    def default_disk(self) -> str:
        return get_value(self.config, "default", "local")

    def disk(self, name=None) -> Storage:
        name = name or self.default_disk

        if name not in self._disks:
            self._disks[name] = self._resolve(name)

        return self._disks[name]

    def register(self, name: str, storage: Storage):
        """Use an already built adapter for `name`."""
        self._disks[name] = storage

    def _resolve(self, name: str) -> Storage:
        options = get_value(self.config, "disks", {}).get(name)
        if not isinstance(options, dict):
            raise DiskNotConfigured(f"Disk [{name}] does not have a configured driver.")

        driver = options.get("driver")
        factory = DRIVERS.get(driver)
        if factory is None:
            raise DiskNotConfigured(f"Driver [{driver}] is not supported (disk [{name}]).")

        try:
            storage = factory(options)
        except ValueError as e:
            raise DiskNotConfigured(f"Disk [{name}]: {e}") from e

        storage_logger.info(f"Disk ready | name={name} | {storage!r}")
        return storage
