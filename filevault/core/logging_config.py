import os
import stat
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from filevault.core.settings import LOG_DIR


def setup_logger(name: str, log_file: str, level=logging.INFO) -> logging.Logger:
    """
    Create a rotating logger with both file + console output.
    - Avoids duplicate handlers
    - Log files are readable by the owner only
    """
    log_path = Path(LOG_DIR) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    try:
        os.chmod(log_path, stat.S_IRUSR | stat.S_IWUSR)
    except OSError:
        pass  # not supported on every platform

    return logger


# Initialize all loggers
vault_logger = setup_logger("vault", "crypto/vault.log")
key_logger = setup_logger("key_management", "crypto/key_management.log")
storage_logger = setup_logger("storage", "storage/storage.log")
system_logger = setup_logger("system", "system/system.log")
error_logger = setup_logger("error", "error/error.log", level=logging.ERROR)
