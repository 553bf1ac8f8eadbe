import json
import base64

import pytest

from filevault import cli
from filevault.crypto.key import Key


@pytest.fixture
def workspace(tmp_path):
    disk = tmp_path / "disk"
    disk.mkdir()
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "default": "local",
        "disks": {"local": {"driver": "local", "root": str(disk)}},
    }), encoding="utf-8")
    key = Key.make().to_base64()
    return disk, str(config_path), key


def test_keygen_prints_base64_key(capsys):
    assert cli.main(["keygen", "--cipher", "AES-256-CBC"]) == 0

    printed = capsys.readouterr().out.strip()
    assert printed.startswith("base64:")
    assert len(base64.b64decode(printed[len("base64:"):])) == 32


def test_encrypt_then_decrypt(workspace):
    disk, config, key = workspace
    (disk / "a.txt").write_bytes(b"alpha" * 1000)
    (disk / "b.txt").write_bytes(b"beta")

    assert cli.main(["encrypt", "a.txt", "b.txt", "--key", key, "--config", config]) == 0
    assert sorted(p.name for p in disk.iterdir()) == ["a.txt.enc", "b.txt.enc"]

    assert cli.main(["decrypt", "a.txt.enc", "--keep", "--key", key, "--config", config]) == 0
    assert (disk / "a.txt").read_bytes() == b"alpha" * 1000
    assert (disk / "a.txt.enc").exists()


def test_key_from_environment(workspace, monkeypatch):
    disk, config, key = workspace
    (disk / "a.txt").write_bytes(b"alpha")
    monkeypatch.setenv("FILEVAULT_KEY", key)

    assert cli.main(["encrypt", "a.txt", "--config", config]) == 0
    assert (disk / "a.txt.enc").exists()


def test_batch_reports_failures(workspace, capsys):
    disk, config, key = workspace
    (disk / "a.txt").write_bytes(b"alpha")

    assert cli.main(["encrypt", "a.txt", "missing.txt", "--key", key, "--config", config]) == 1
    assert (disk / "a.txt.enc").exists()
    assert "missing.txt" in capsys.readouterr().err


def test_missing_key(workspace, monkeypatch):
    disk, config, _ = workspace
    monkeypatch.delenv("FILEVAULT_KEY", raising=False)

    assert cli.main(["encrypt", "a.txt", "--config", config]) == 1


def test_dest_requires_single_source(workspace):
    _, config, key = workspace
    with pytest.raises(SystemExit):
        cli.main(["encrypt", "a", "b", "--dest", "c", "--key", key, "--config", config])


def test_cat_writes_plaintext_to_stdout(workspace, capfdbinary):
    disk, config, key = workspace
    (disk / "a.txt").write_bytes(b"streamed plaintext")
    cli.main(["encrypt", "a.txt", "--key", key, "--config", config])
    capfdbinary.readouterr()

    assert cli.main(["cat", "a.txt.enc", "--key", key, "--config", config]) == 0
    assert capfdbinary.readouterr().out.endswith(b"streamed plaintext")


def test_dest_same_as_source_keeps_file(workspace, capsys):
    disk, config, key = workspace
    (disk / "a.txt").write_bytes(b"alpha" * 160)

    assert cli.main(["encrypt", "a.txt", "--dest", "a.txt", "--key", key, "--config", config]) == 1
    assert (disk / "a.txt").read_bytes() == b"alpha" * 160
    assert "same file" in capsys.readouterr().err
