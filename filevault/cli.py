import os
import sys
import time
import argparse

from filevault.core.config_manager import load_config
from filevault.core.exceptions import FileVaultError
from filevault.core.logging_config import system_logger, error_logger, key_logger
from filevault.core.settings import DEFAULT_CIPHER, KEY_ENV_VAR, CIPHER_ENV_VAR
from filevault.crypto.key import Key, CipherMethod
from filevault.crypto.vault import Vault
from filevault.storage.manager import StorageManager
from filevault.watcher.folder_watcher import start_folder_watcher

CIPHER_CHOICES = [c.value for c in CipherMethod]


# ============================================================
# HELPERS
# ============================================================
def _load_key(args) -> Key:
    value = args.key or os.environ.get(KEY_ENV_VAR)
    if not value:
        raise FileVaultError(f"No key given. Use --key or set {KEY_ENV_VAR}.")
    cipher = args.cipher or os.environ.get(CIPHER_ENV_VAR) or DEFAULT_CIPHER
    return Key(value, cipher)


def _build_vault(args) -> Vault:
    config = load_config(args.config)
    return Vault(_load_key(args), disk=args.disk, manager=StorageManager(config))


def _run_batch(operation, vault, sources, destination, keep) -> int:
    success_count = 0
    failed_count = 0

    for source in sources:
        try:
            method = vault.encrypt if operation == "encrypt" else vault.decrypt
            result = method(source, destination, delete_source=not keep)
            print(f"✔ {source} -> {result}")
            success_count += 1
        except FileVaultError as e:
            error_logger.error(f"Failed to {operation} {source}: {e}", exc_info=True)
            print(f"✖ Failed {operation} {source}: {e}", file=sys.stderr)
            failed_count += 1

    system_logger.info(f"Batch {operation} completed: {success_count} success, {failed_count} failed")
    return 0 if failed_count == 0 else 1


# ============================================================
# COMMANDS
# ============================================================
def cmd_keygen(args) -> int:
    key = Key.make(args.cipher or DEFAULT_CIPHER)
    key_logger.info(f"Generated new {key.cipher.value} key")
    print(key.to_base64())
    return 0


def cmd_encrypt(args) -> int:
    return _run_batch("encrypt", _build_vault(args), args.sources, args.dest, args.keep)


def cmd_decrypt(args) -> int:
    return _run_batch("decrypt", _build_vault(args), args.sources, args.dest, args.keep)


def cmd_cat(args) -> int:
    vault = _build_vault(args)
    vault.stream_decrypt(args.source, sys.stdout.buffer)
    return 0


def cmd_watch(args) -> int:
    observer = start_folder_watcher(_load_key(args), load_config(args.config))
    if not observer:
        return 1

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        observer.stop()
    observer.join()
    return 0


# ============================================================
# PARSER
# ============================================================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filevault",
        description="Chunked AES-CBC file encryption over local and S3 disks",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    keygen = sub.add_parser("keygen", help="Generate a random key")
    keygen.add_argument("--cipher", choices=CIPHER_CHOICES)
    keygen.set_defaults(func=cmd_keygen)

    def add_common(p):
        p.add_argument("--key", help=f"Key, raw or base64:... (default: ${KEY_ENV_VAR})")
        p.add_argument("--cipher", choices=CIPHER_CHOICES)
        p.add_argument("--config", help="Path to config.json")

    for name, func in (("encrypt", cmd_encrypt), ("decrypt", cmd_decrypt)):
        p = sub.add_parser(name, help=f"{name.capitalize()} files on a disk")
        p.add_argument("sources", nargs="+")
        p.add_argument("--dest", help="Destination name (single source only)")
        p.add_argument("--disk", help="Disk name from config (default: config 'default')")
        p.add_argument("--keep", action="store_true", help="Keep the source file")
        add_common(p)
        p.set_defaults(func=func)

    cat = sub.add_parser("cat", help="Decrypt a file to stdout")
    cat.add_argument("source")
    cat.add_argument("--disk")
    add_common(cat)
    cat.set_defaults(func=cmd_cat)

    watch = sub.add_parser("watch", help="Encrypt files created in the configured watch folder")
    add_common(watch)
    watch.set_defaults(func=cmd_watch)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "dest", None) and len(args.sources) > 1:
        parser.error("--dest can only be used with a single source")

    try:
        return args.func(args)
    except FileVaultError as e:
        error_logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(f"✖ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
