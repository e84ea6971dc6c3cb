"""
Tests for encryption at rest: text, record and binary entries, wrong-key and
tamper detection, pluggable ciphers, and key hygiene.
"""

import base64
import logging

import pytest

from cachejar import (
    CacheStore,
    CipherPrimitive,
    DecryptionError,
    EncryptionConfig,
    EntryNotFoundError,
    PasswordCipher,
    RecordParseError,
)

FAST_KDF_ITERATIONS = 1000

KEY = "correct horse battery staple"


@pytest.fixture
def cipher():
    return PasswordCipher(EncryptionConfig(kdf_iterations=FAST_KDF_ITERATIONS))


class TestPasswordCipher:
    def test_round_trip(self, cipher):
        ciphertext = cipher.encrypt(b"plaintext", KEY)
        assert cipher.decrypt(ciphertext, KEY) == b"plaintext"

    def test_bytes_passphrase(self, cipher):
        ciphertext = cipher.encrypt(b"plaintext", b"\x00binary key")
        assert cipher.decrypt(ciphertext, b"\x00binary key") == b"plaintext"

    def test_salt_prefix(self, cipher):
        ciphertext = cipher.encrypt(b"plaintext", KEY)
        token = ciphertext[cipher.config.salt_bytes:]
        # Fernet tokens are URL-safe base64 starting with version byte 0x80
        assert base64.urlsafe_b64decode(token)[0] == 0x80

    def test_fresh_salt_per_encryption(self, cipher):
        assert cipher.encrypt(b"same", KEY) != cipher.encrypt(b"same", KEY)

    def test_wrong_key(self, cipher):
        ciphertext = cipher.encrypt(b"plaintext", KEY)
        with pytest.raises(DecryptionError):
            cipher.decrypt(ciphertext, "wrong key")

    def test_too_short(self, cipher):
        with pytest.raises(DecryptionError, match="too short"):
            cipher.decrypt(b"short", KEY)

    def test_salt_size_must_match(self, cipher):
        ciphertext = cipher.encrypt(b"plaintext", KEY)
        other = PasswordCipher(
            EncryptionConfig(kdf_iterations=FAST_KDF_ITERATIONS, salt_bytes=32)
        )
        with pytest.raises(DecryptionError):
            other.decrypt(ciphertext, KEY)

    @pytest.mark.parametrize("key", ["", b""])
    def test_empty_key_rejected(self, cipher, key):
        with pytest.raises(ValueError, match="must not be empty"):
            cipher.encrypt(b"plaintext", key)

    def test_non_string_key_rejected(self, cipher):
        with pytest.raises(TypeError):
            cipher.encrypt(b"plaintext", 1234)

    def test_name(self, cipher):
        assert cipher.name == "pbkdf2-sha256-fernet"


class TestEncryptedText:
    def test_round_trip(self, store):
        store.write_encrypted("secret.txt", "line one\nline two\n", KEY)
        assert store.read_encrypted("secret.txt", KEY) == "line one\nline two\n"

    def test_wrong_key_is_decrypt_failure(self, store):
        store.write_encrypted("secret.txt", "top secret", KEY)
        with pytest.raises(DecryptionError):
            store.read_encrypted("secret.txt", "not the key")

    def test_file_is_base64_ciphertext(self, store, cache_root):
        store.write_encrypted("secret.txt", "top secret", KEY)
        stored = (cache_root / "secret.txt").read_text(encoding="ascii")
        assert "top secret" not in stored
        base64.urlsafe_b64decode(stored)

    def test_tampered_ciphertext(self, store, cache_root):
        store.write_encrypted("secret.txt", "top secret", KEY)
        path = cache_root / "secret.txt"
        raw = bytearray(base64.urlsafe_b64decode(path.read_text()))
        raw[-5] ^= 0x01
        path.write_text(base64.urlsafe_b64encode(bytes(raw)).decode("ascii"))
        with pytest.raises(DecryptionError):
            store.read_encrypted("secret.txt", KEY)

    @pytest.mark.parametrize("byte", [0xFF, 0x80, 0x00, ord("*")])
    def test_corrupted_byte_is_decrypt_failure(self, store, cache_root, byte):
        store.write_encrypted("secret.txt", "top secret", KEY)
        path = cache_root / "secret.txt"
        raw = bytearray(path.read_bytes())
        raw[10] = byte
        path.write_bytes(bytes(raw))
        with pytest.raises(DecryptionError):
            store.read_encrypted("secret.txt", KEY)

    def test_plaintext_entry_is_decrypt_failure(self, store):
        store.write("plain.txt", "definitely *not* base64!")
        with pytest.raises(DecryptionError):
            store.read_encrypted("plain.txt", KEY)

    def test_missing_is_not_found(self, store):
        with pytest.raises(EntryNotFoundError):
            store.read_encrypted("never-written", KEY)

    def test_plain_read_returns_ciphertext(self, store):
        store.write_encrypted("secret.txt", "top secret", KEY)
        assert store.read("secret.txt") != "top secret"

    def test_empty_text(self, store):
        store.write_encrypted("empty", "", KEY)
        assert store.read_encrypted("empty", KEY) == ""


class TestEncryptedRecords:
    def test_round_trip(self, store):
        record = {"user": "ada", "scores": [1, 2, 3], "active": True, "ratio": 0.5}
        store.write_record_encrypted("profile", record, KEY)
        assert store.read_record_encrypted("profile", KEY) == record

    def test_wrong_key_is_not_parse_failure(self, store):
        store.write_record_encrypted("profile", {"a": 1}, KEY)
        with pytest.raises(DecryptionError):
            store.read_record_encrypted("profile", "not the key")

    def test_decrypted_non_record_is_parse_failure(self, store):
        store.write_encrypted("profile", "{not json", KEY)
        with pytest.raises(RecordParseError):
            store.read_record_encrypted("profile", KEY)

    def test_missing_is_not_found(self, store):
        with pytest.raises(EntryNotFoundError):
            store.read_record_encrypted("never-written", KEY)


class TestEncryptedBinary:
    def test_round_trip(self, store):
        data = bytes(range(256))
        store.write_binary_encrypted("blob", data, KEY)
        assert store.read_binary_encrypted("blob", KEY) == data

    def test_file_is_salt_and_token(self, store, cache_root):
        store.write_binary_encrypted("blob", b"payload", KEY)
        stored = (cache_root / "blob").read_bytes()
        assert b"payload" not in stored
        assert len(stored) > 16

    @pytest.mark.parametrize("data", [5, "text", [1, 2], None])
    def test_non_bytes_rejected(self, store, cache_root, data):
        with pytest.raises(TypeError):
            store.write_binary_encrypted("blob", data, KEY)
        assert not (cache_root / "blob").exists()

    def test_bytes_like_accepted(self, store):
        store.write_binary_encrypted("blob", bytearray(b"abc"), KEY)
        store.write_binary_encrypted("view", memoryview(b"xyz"), KEY)
        assert store.read_binary_encrypted("blob", KEY) == b"abc"
        assert store.read_binary_encrypted("view", KEY) == b"xyz"

    def test_wrong_key(self, store):
        store.write_binary_encrypted("blob", b"payload", KEY)
        with pytest.raises(DecryptionError) as exc_info:
            store.read_binary_encrypted("blob", "nope")
        assert exc_info.value.context["file_path"].endswith("blob")


class TestKeyHygiene:
    def test_key_never_logged(self, store, caplog):
        with caplog.at_level(logging.DEBUG):
            store.write_encrypted("secret.txt", "data", KEY)
            store.read_encrypted("secret.txt", KEY)
            with pytest.raises(DecryptionError):
                store.read_encrypted("secret.txt", KEY + "-wrong")
        assert KEY not in caplog.text
        for record in caplog.records:
            assert KEY not in str(record.__dict__)

    def test_key_not_in_error_context(self, store):
        store.write_encrypted("secret.txt", "data", KEY)
        with pytest.raises(DecryptionError) as exc_info:
            store.read_encrypted("secret.txt", "wrong-key-value")
        assert "wrong-key-value" not in str(exc_info.value)
        assert "wrong-key-value" not in str(exc_info.value.context)

    def test_key_not_kept_on_store(self, store):
        store.write_encrypted("secret.txt", "data", KEY)
        for component in (store, store.encryption, store.encryption.cipher):
            assert KEY not in str(vars(component))


class ReversingCipher(CipherPrimitive):
    """Toy cipher: reverses bytes and checks a passphrase tag."""

    def encrypt(self, plaintext, passphrase):
        return passphrase.encode() + b"|" + plaintext[::-1]

    def decrypt(self, ciphertext, passphrase):
        tag, _, body = ciphertext.partition(b"|")
        if tag != passphrase.encode():
            raise DecryptionError("tag mismatch")
        return body[::-1]

    @property
    def name(self):
        return "reversing"


class TestPluggableCipher:
    def test_custom_cipher_is_used(self, cache_root):
        store = CacheStore.open(cache_root, cipher=ReversingCipher())
        store.write_binary_encrypted("blob", b"abc", "k")
        assert (cache_root / "blob").read_bytes() == b"k|cba"
        assert store.read_binary_encrypted("blob", "k") == b"abc"

    def test_custom_cipher_text_and_records(self, cache_root):
        store = CacheStore.open(cache_root, cipher=ReversingCipher())
        store.write_encrypted("t", "hello", "k")
        assert store.read_encrypted("t", "k") == "hello"
        store.write_record_encrypted("r", {"x": [1, 2]}, "k")
        assert store.read_record_encrypted("r", "k") == {"x": [1, 2]}
        with pytest.raises(DecryptionError):
            store.read_record_encrypted("r", "other")
