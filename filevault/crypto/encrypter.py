import os
import math
from contextlib import ExitStack, closing

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from filevault.core.exceptions import (
    DecryptionFailure,
    StreamReadFailure,
    StreamWriteFailure,
)
from filevault.core.settings import (
    IV_SIZE,
    ENCRYPT_CHUNK_SIZE,
    DECRYPT_CHUNK_SIZE,
    MAX_CHUNK_RETRIES,
)
from filevault.crypto.key import Key


class Encrypter:
    """
    Chunked AES-CBC transform between two byte streams.

    Output layout: a random 16-byte IV followed by the ciphertext
    chunks. Every plaintext chunk of 255 blocks is encrypted on its own
    with PKCS#7 padding, so a full chunk becomes 256 blocks (4096 bytes).
    The IV of each chunk is the first block of the previous ciphertext
    chunk.

    Both streams are closed when a call returns or raises.
    """

    def __init__(self, key: Key, max_retries: int = MAX_CHUNK_RETRIES):
        self._material = bytes(key)
        self.cipher = key.cipher
        self.max_retries = max_retries

    # ============================================================
    # ENCRYPT
    # ============================================================
    def encrypt(self, source, destination, source_size: int) -> bool:
        with ExitStack() as stack:
            stack.enter_context(closing(source))
            stack.enter_context(closing(destination))

            iv = os.urandom(IV_SIZE)
            _write(destination, iv)

            total_chunks = math.ceil(source_size / ENCRYPT_CHUNK_SIZE)
            index = 0

            while True:
                plain = self._read_chunk(
                    source, ENCRYPT_CHUNK_SIZE, index, total_chunks, 0, source_size
                )
                encrypted = self._encrypt_chunk(plain, iv)
                _write(destination, encrypted)

                # next IV is the first block of this ciphertext chunk
                iv = encrypted[:IV_SIZE]
                index += 1

                if len(plain) < ENCRYPT_CHUNK_SIZE:
                    break

        return True

    # ============================================================
    # DECRYPT
    # ============================================================
    def decrypt(self, source, destination, source_size: int) -> bool:
        with ExitStack() as stack:
            stack.enter_context(closing(source))
            stack.enter_context(closing(destination))

            iv = _fill(source, IV_SIZE)
            if len(iv) != IV_SIZE:
                raise DecryptionFailure(
                    "Encrypted stream is too short to hold an initialization vector"
                )

            body_size = max(source_size - IV_SIZE, 0)
            total_chunks = math.ceil(body_size / DECRYPT_CHUNK_SIZE)
            index = 0

            while True:
                encrypted = self._read_chunk(
                    source, DECRYPT_CHUNK_SIZE, index, total_chunks, IV_SIZE, body_size
                )
                if not encrypted:
                    break

                _write(destination, self._decrypt_chunk(encrypted, iv))

                iv = encrypted[:IV_SIZE]
                index += 1

                if len(encrypted) < DECRYPT_CHUNK_SIZE:
                    break

        return True

    # ============================================================
    # HELPERS
    # ============================================================
    def _read_chunk(self, stream, size, index, total_chunks, offset, length):
        """
        Read chunk `index` of a `length`-byte region starting at `offset`.
        Remote streams (S3) may stop short before the real end of the
        object; a chunk holding fewer bytes than the region has left is
        read again from its start offset. Only the last chunk may be short.
        """
        expected = min(size, max(length - size * index, 0))
        attempts = 0
        while True:
            chunk = _fill(stream, size)
            if len(chunk) >= expected:
                return chunk

            attempts += 1
            if attempts > self.max_retries:
                raise StreamReadFailure(
                    f"Chunk {index} of {total_chunks} still short after "
                    f"{self.max_retries} retries ({len(chunk)}/{expected} bytes)"
                )

            try:
                stream.seek(offset + size * index)
            except (OSError, ValueError) as e:
                raise StreamReadFailure(f"Unable to rewind to chunk {index}: {e}") from e

    def _algorithm(self):
        return algorithms.AES(self._material)

    def _encrypt_chunk(self, plain: bytes, iv: bytes) -> bytes:
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plain) + padder.finalize()

        encryptor = Cipher(self._algorithm(), modes.CBC(iv)).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def _decrypt_chunk(self, encrypted: bytes, iv: bytes) -> bytes:
        decryptor = Cipher(self._algorithm(), modes.CBC(iv)).decryptor()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()

        try:
            padded = decryptor.update(encrypted) + decryptor.finalize()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise DecryptionFailure(f"Decryption failed: {e}") from e


def _fill(stream, size: int) -> bytes:
    """Call read() until `size` bytes arrive or the stream returns nothing."""
    buffer = bytearray()
    while len(buffer) < size:
        try:
            data = stream.read(size - len(buffer))
        except OSError as e:
            raise StreamReadFailure(f"Failed to read from source stream: {e}") from e
        if not data:
            break
        buffer += data
    return bytes(buffer)


def _write(stream, data: bytes):
    try:
        stream.write(data)
    except OSError as e:
        raise StreamWriteFailure(f"Failed to write to destination stream: {e}") from e


# ============================================================
# LOCAL FILE ENTRYPOINTS
# ============================================================
def _open_pair(input_path, output_path):
    source = open(input_path, "rb")
    try:
        destination = open(output_path, "wb")
    except OSError:
        source.close()
        raise
    return source, destination


def encrypt_file(key: Key, input_path, output_path) -> bool:
    size = os.path.getsize(input_path)
    source, destination = _open_pair(input_path, output_path)
    return Encrypter(key).encrypt(source, destination, size)


def decrypt_file(key: Key, input_path, output_path) -> bool:
    size = os.path.getsize(input_path)
    source, destination = _open_pair(input_path, output_path)
    return Encrypter(key).decrypt(source, destination, size)
