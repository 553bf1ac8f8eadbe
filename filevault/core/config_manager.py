import copy
import json
from pathlib import Path

from filevault.core.settings import CONFIG_FILE, DATA_DIR
from filevault.core.logging_config import system_logger

DEFAULT_CONFIG = {
    "default": "local",
    "disks": {
        "local": {
            "driver": "local",
            "root": str(DATA_DIR),
        },
        "memory": {
            "driver": "memory",
        },
        "s3": {
            "driver": "s3",
            "bucket": "",
            "prefix": "",
            "region": None,
            "endpoint": None,
        },
    },
    "auto_encrypt": {
        "enabled": False,
        "watch_folder": "",
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path=None) -> dict:
    """
    Load config.json merged over the defaults.
    A missing file is created with the default config.
    """
    config_file = Path(path) if path else CONFIG_FILE

    if not config_file.exists():
        system_logger.warning(
            f"{config_file.name} not found. Creating default config."
        )
        save_config(DEFAULT_CONFIG, config_file)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_file, "r", encoding="utf-8") as f:
        return _merge(DEFAULT_CONFIG, json.load(f))


def save_config(config: dict, path=None):
    config_file = Path(path) if path else CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def update_config(new_data: dict, path=None) -> dict:
    config = _merge(load_config(path), new_data)
    save_config(config, path)
    return config


def get_value(config: dict, key: str, default=None):
    """
    Resolve a dotted key, e.g. get_value(config, "disks.local.root").
    """
    if key in config:
        return config[key]

    value = config
    for segment in key.split("."):
        if isinstance(value, dict) and segment in value:
            value = value[segment]
        else:
            return default

    return default if value is None else value
