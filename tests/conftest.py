import os
import tempfile

# Keep logs and the default config out of the user's home directory.
os.environ.setdefault("FILEVAULT_HOME", tempfile.mkdtemp(prefix="filevault-tests-"))

import pytest

from filevault.crypto.key import Key, CipherMethod
from filevault.storage.manager import StorageManager
from filevault.storage.memory import InMemoryStorage

from stubs import FakeS3Client


# ============================================================
# FIXTURES
# ============================================================
@pytest.fixture(params=[CipherMethod.AES_128_CBC, CipherMethod.AES_256_CBC], ids=["aes128", "aes256"])
def key(request):
    return Key.make(request.param)


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def manager(tmp_path, memory_storage):
    config = {
        "default": "local",
        "disks": {
            "local": {"driver": "local", "root": str(tmp_path / "disk")},
            "memory": {"driver": "memory"},
        },
    }
    manager = StorageManager(config)
    manager.register("memory", memory_storage)
    return manager


@pytest.fixture
def fake_s3():
    return FakeS3Client()
