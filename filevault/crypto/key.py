"""
Symmetric keys for the file encrypter.

A key carries the cipher it was made for. Key material is exposed
only through bytes(key) and never appears in repr() or logs.
"""

import os
import base64
import binascii
import hmac
from enum import Enum

from filevault.core.exceptions import UnsupportedCipherOrKeyLength
from filevault.core.settings import DEFAULT_CIPHER, KEY_ENV_VAR, CIPHER_ENV_VAR

BASE64_PREFIX = "base64:"


class CipherMethod(str, Enum):
    AES_128_CBC = "AES-128-CBC"
    AES_256_CBC = "AES-256-CBC"

    @property
    def key_size(self) -> int:
        return 16 if self is CipherMethod.AES_128_CBC else 32

    @classmethod
    def parse(cls, value) -> "CipherMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedCipherOrKeyLength(
                f"Unsupported cipher {value!r}; use AES-128-CBC or AES-256-CBC"
            ) from None


class Key:
    """
    Immutable encryption key.

    `value` is raw bytes, or text. Text starting with "base64:" is
    decoded once here; any other text is used as raw UTF-8 bytes.
    """

    __slots__ = ("_cipher", "_material")

    def __init__(self, value, cipher=DEFAULT_CIPHER):
        cipher = CipherMethod.parse(cipher)

        if isinstance(value, str):
            value = _decode(value)
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise UnsupportedCipherOrKeyLength(
                f"Key material must be bytes or text, not {type(value).__name__}"
            )
        material = bytes(value)

        if len(material) != cipher.key_size:
            raise UnsupportedCipherOrKeyLength()

        object.__setattr__(self, "_cipher", cipher)
        object.__setattr__(self, "_material", material)

    # ------------------------------------------------------------
    # factories
    # ------------------------------------------------------------
    @classmethod
    def make(cls, cipher=DEFAULT_CIPHER) -> "Key":
        """Generate a random key that suits the cipher method."""
        cipher = CipherMethod.parse(cipher)
        return cls(os.urandom(cipher.key_size), cipher)

    @classmethod
    def from_bytes(cls, material: bytes, cipher=DEFAULT_CIPHER) -> "Key":
        return cls(material, cipher)

    @classmethod
    def from_string(cls, text: str, cipher=DEFAULT_CIPHER) -> "Key":
        return cls(str(text), cipher)

    @classmethod
    def from_env(cls, environ=None) -> "Key":
        environ = os.environ if environ is None else environ
        value = environ.get(KEY_ENV_VAR)
        if not value:
            raise UnsupportedCipherOrKeyLength(f"{KEY_ENV_VAR} is not set")
        return cls(value, environ.get(CIPHER_ENV_VAR) or DEFAULT_CIPHER)

    # ------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------
    @property
    def cipher(self) -> CipherMethod:
        return self._cipher

    def to_base64(self) -> str:
        return BASE64_PREFIX + base64.b64encode(self._material).decode("ascii")

    def __bytes__(self) -> bytes:
        return self._material

    def __setattr__(self, name, value):
        raise AttributeError("Key is immutable")

    def __delattr__(self, name):
        raise AttributeError("Key is immutable")

    def __eq__(self, other):
        if not isinstance(other, Key):
            return NotImplemented
        return self._cipher is other._cipher and hmac.compare_digest(
            self._material, other._material
        )

    __hash__ = None

    def __repr__(self):
        return f"Key(cipher={self._cipher.value!r}, material=<hidden>)"


def _decode(text: str) -> bytes:
    if not text.startswith(BASE64_PREFIX):
        return text.encode("utf-8")

    try:
        return base64.b64decode(text[len(BASE64_PREFIX):], validate=True)
    except (binascii.Error, ValueError):
        raise UnsupportedCipherOrKeyLength("Key is not valid base64") from None
