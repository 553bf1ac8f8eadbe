import time
import threading
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from filevault.core.config_manager import load_config
from filevault.core.logging_config import system_logger, error_logger
from filevault.crypto.key import Key
from filevault.crypto.vault import Vault
from filevault.storage.local import LocalStorage
from filevault.storage.manager import StorageManager


# ===============================
# CONSTANTS
# ===============================
IGNORE_EXTENSIONS = (".tmp", ".part", ".download", ".enc", ".dec")
FILE_STABLE_CHECK_INTERVAL = 1      # seconds
FILE_STABLE_MAX_RETRY = 15

WATCH_DISK = "watch"


class FolderWatcherHandler(FileSystemEventHandler):
    """
    Encrypt files created in the watched folder.
    The vault's disk must be a local disk rooted at that folder.
    """

    def __init__(self, vault: Vault, root, logger=system_logger,
                 check_interval=FILE_STABLE_CHECK_INTERVAL,
                 max_retry=FILE_STABLE_MAX_RETRY):
        self.vault = vault
        self.root = Path(root).resolve()
        self.logger = logger
        self.check_interval = check_interval
        self.max_retry = max_retry
        self._processing = set()  # prevent duplicate processing
        self._lock = threading.Lock()

    def should_process(self, file_path: Path) -> bool:
        if not file_path.is_file():
            return False

        if file_path.suffix.lower() in IGNORE_EXTENSIONS:
            self.logger.info(f"[WATCHER] Ignored file: {file_path.name}")
            return False

        with self._lock:
            if file_path in self._processing:
                return False
            self._processing.add(file_path)

        return True

    def on_created(self, event):
        if event.is_directory:
            return

        file_path = Path(event.src_path).resolve()
        if not self.should_process(file_path):
            return

        self.logger.info(f"[WATCHER] New file detected: {file_path}")

        threading.Thread(
            target=self.process_file,
            args=(file_path,),
            daemon=True,
        ).start()

    def process_file(self, file_path: Path):
        try:
            self._wait_until_complete(file_path)

            name = file_path.relative_to(self.root).as_posix()
            destination = self.vault.encrypt(name)

            self.logger.info(f"[WATCHER] Encrypted {name} -> {destination}")

        except Exception as exc:
            error_logger.error(
                f"[WATCHER] Failed to process {file_path.name}: {exc}",
                exc_info=True,
            )
        finally:
            with self._lock:
                self._processing.discard(file_path)

    def _wait_until_complete(self, path: Path):
        """
        Wait until file size is stable to avoid encrypting
        a partially written file.
        """
        last_size = -1

        for _ in range(self.max_retry):
            try:
                current_size = path.stat().st_size
            except FileNotFoundError:
                raise RuntimeError("File disappeared before processing") from None

            if current_size == last_size:
                return

            last_size = current_size
            time.sleep(self.check_interval)

        raise RuntimeError("File write not completed (timeout)")


def start_folder_watcher(key: Key, config: dict = None):
    """
    Start the auto-encrypt folder watcher based on config.
    Returns the Observer if started, otherwise None.
    """
    config = config if config is not None else load_config()

    auto_cfg = config.get("auto_encrypt", {})
    if not auto_cfg.get("enabled", False):
        system_logger.info("Auto encrypt is disabled in config.")
        return None

    watch_folder = auto_cfg.get("watch_folder")
    if not watch_folder:
        system_logger.warning(
            "Auto encrypt enabled but watch_folder is not configured."
        )
        return None

    watch_path = Path(watch_folder)
    if not watch_path.is_dir():
        system_logger.error(
            f"Watch folder does not exist or is not a directory: {watch_folder}"
        )
        return None

    manager = StorageManager(config)
    manager.register(WATCH_DISK, LocalStorage(watch_path))
    vault = Vault(key, disk=WATCH_DISK, manager=manager)

    handler = FolderWatcherHandler(vault, watch_path)
    observer = Observer()
    observer.schedule(handler, str(watch_path), recursive=False)
    observer.start()

    system_logger.info(f"Auto encrypt watcher started for folder: {watch_folder}")
    return observer
