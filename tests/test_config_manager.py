import json

from filevault.core.config_manager import (
    DEFAULT_CONFIG,
    load_config,
    save_config,
    update_config,
    get_value,
)


def test_missing_config_is_created_with_defaults(tmp_path):
    path = tmp_path / "config.json"

    config = load_config(path)

    assert config == DEFAULT_CONFIG
    assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG


def test_loaded_config_is_merged_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    save_config({"default": "s3", "disks": {"s3": {"bucket": "backups"}}}, path)

    config = load_config(path)

    assert config["default"] == "s3"
    assert config["disks"]["s3"]["bucket"] == "backups"
    assert config["disks"]["s3"]["driver"] == "s3"
    assert "local" in config["disks"]


def test_update_config(tmp_path):
    path = tmp_path / "config.json"
    update_config({"auto_encrypt": {"enabled": True}}, path)

    config = load_config(path)
    assert config["auto_encrypt"]["enabled"] is True
    assert config["auto_encrypt"]["watch_folder"] == ""


def test_defaults_are_not_mutated(tmp_path):
    config = load_config(tmp_path / "config.json")
    config["disks"]["local"]["root"] = "/elsewhere"
    assert DEFAULT_CONFIG["disks"]["local"]["root"] != "/elsewhere"


def test_get_value_dotted_keys():
    config = {"disks": {"local": {"root": "/data", "url": None}}}

    assert get_value(config, "disks.local.root") == "/data"
    assert get_value(config, "disks.local.url", "fallback") == "fallback"
    assert get_value(config, "disks.ftp.root", "none") == "none"
    assert get_value(config, "disks") is config["disks"]
