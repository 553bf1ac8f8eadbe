import os
from pathlib import Path

# ============================================================
# BASE DIRECTORIES
# ============================================================

APP_HOME = Path(
    os.environ.get("FILEVAULT_HOME", str(Path.home() / ".filevault"))
).expanduser()

DATA_DIR = APP_HOME / "data"
LOG_DIR  = APP_HOME / "logs"

CONFIG_FILE = APP_HOME / "config.json"


# ============================================================
# INIT REQUIRED DIRECTORIES
# ============================================================

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)

(LOG_DIR / "system").mkdir(exist_ok=True)
(LOG_DIR / "crypto").mkdir(exist_ok=True)
(LOG_DIR / "storage").mkdir(exist_ok=True)
(LOG_DIR / "error").mkdir(exist_ok=True)


# ============================================================
# ENCRYPTION / DECRYPTION PARAMETERS
# ============================================================

# AES-CBC
BLOCK_SIZE = 16          # AES block, bytes
IV_SIZE    = 16

# 255 blocks per plaintext chunk; with per-chunk padding each
# ciphertext chunk is (255 + 1) * 16 = 4096 bytes
FILE_ENCRYPTION_BLOCKS = 255
ENCRYPT_CHUNK_SIZE     = BLOCK_SIZE * FILE_ENCRYPTION_BLOCKS         # 4080
DECRYPT_CHUNK_SIZE     = BLOCK_SIZE * (FILE_ENCRYPTION_BLOCKS + 1)   # 4096

# how many times a chunk is re-read after a stream ends early
MAX_CHUNK_RETRIES = 16

DEFAULT_CIPHER = "AES-128-CBC"

# S3 writer keeps this much in memory before spilling to disk
S3_SPOOL_SIZE = 8 * 1024 * 1024   # 8MB


# ============================================================
# ENVIRONMENT
# ============================================================

KEY_ENV_VAR    = "FILEVAULT_KEY"
CIPHER_ENV_VAR = "FILEVAULT_CIPHER"


if __name__ == "__main__":
    print("APP_HOME    :", APP_HOME)
    print("DATA_DIR    :", DATA_DIR)
    print("LOG_DIR     :", LOG_DIR)
    print("CONFIG_FILE :", CONFIG_FILE)
