"""
Unit tests for encryption keys.
"""

import base64

import pytest

from filevault.core.exceptions import UnsupportedCipherOrKeyLength
from filevault.crypto.key import Key, CipherMethod


class TestKeyValidation:
    def test_aes128_rejects_15_bytes(self):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key.from_bytes(b"k" * 15, CipherMethod.AES_128_CBC)

    def test_aes128_accepts_16_bytes(self):
        key = Key.from_bytes(b"k" * 16, CipherMethod.AES_128_CBC)
        assert key.cipher is CipherMethod.AES_128_CBC

    def test_aes256_accepts_32_bytes(self):
        key = Key.from_bytes(b"k" * 32, CipherMethod.AES_256_CBC)
        assert key.cipher is CipherMethod.AES_256_CBC

    def test_aes256_rejects_31_bytes(self):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key.from_bytes(b"k" * 31, CipherMethod.AES_256_CBC)

    def test_length_must_match_cipher(self):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key.from_bytes(b"k" * 32, CipherMethod.AES_128_CBC)

    def test_unknown_cipher(self):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key.from_bytes(b"k" * 16, "AES-128-GCM")

    def test_cipher_name_is_case_insensitive(self):
        assert Key(b"k" * 16, "aes-128-cbc").cipher is CipherMethod.AES_128_CBC

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            Key(b"short")

    @pytest.mark.parametrize("value", [16, None, [0] * 16])
    def test_material_must_be_bytes_or_text(self, value):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key(value)
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key.from_bytes(value)

    def test_bytearray_and_memoryview_are_accepted(self):
        assert Key(bytearray(b"k" * 16)) == Key(memoryview(b"k" * 16))


class TestKeyGeneration:
    @pytest.mark.parametrize("cipher, size", [
        (CipherMethod.AES_128_CBC, 16),
        (CipherMethod.AES_256_CBC, 32),
    ])
    def test_make_uses_cipher_key_size(self, cipher, size):
        key = Key.make(cipher)
        assert len(bytes(key)) == size
        assert key.cipher is cipher

    def test_default_cipher_is_aes128(self):
        assert Key.make().cipher is CipherMethod.AES_128_CBC

    def test_make_is_random(self):
        assert bytes(Key.make()) != bytes(Key.make())


class TestTextualKeys:
    def test_base64_prefix_is_decoded(self):
        key = Key("base64:" + base64.b64encode(b"SuperRealSecretA").decode())
        assert bytes(key) == b"SuperRealSecretA"

    def test_plain_text_is_raw_bytes(self):
        assert bytes(Key.from_string("SuperRealSecretA")) == b"SuperRealSecretA"

    def test_invalid_base64(self):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key("base64:not*base64!")

    def test_to_base64_round_trips(self):
        key = Key.make(CipherMethod.AES_256_CBC)
        assert Key(key.to_base64(), CipherMethod.AES_256_CBC) == key

    def test_from_env(self):
        environ = {
            "FILEVAULT_KEY": "base64:" + base64.b64encode(b"x" * 32).decode(),
            "FILEVAULT_CIPHER": "AES-256-CBC",
        }
        key = Key.from_env(environ)
        assert key.cipher is CipherMethod.AES_256_CBC
        assert bytes(key) == b"x" * 32

    def test_from_env_requires_key(self):
        with pytest.raises(UnsupportedCipherOrKeyLength):
            Key.from_env({})


class TestKeySafety:
    def test_repr_hides_material(self):
        key = Key.from_bytes(b"SuperRealSecretA")
        assert "SuperRealSecretA" not in repr(key)
        assert "AES-128-CBC" in repr(key)

    def test_immutable(self):
        key = Key.make()
        with pytest.raises(AttributeError):
            key._material = b"0" * 16
        with pytest.raises(AttributeError):
            key.cipher = CipherMethod.AES_256_CBC

    def test_not_hashable(self):
        with pytest.raises(TypeError):
            hash(Key.make())

    def test_equality_compares_material_and_cipher(self):
        material = b"k" * 32
        assert Key(material, CipherMethod.AES_256_CBC) == Key(material, CipherMethod.AES_256_CBC)
        assert Key(material[:16]) != Key(b"j" * 16)
