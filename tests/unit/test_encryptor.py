"""Tests for the hybrid encryptor."""

from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING

import pytest

from portable_license import Encryptor, EncryptorError

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey


def _envelope(artifact: str) -> dict[str, str]:
    return json.loads(base64.b64decode(artifact))


def _rebuild(envelope: dict[str, str]) -> str:
    return base64.b64encode(json.dumps(envelope, separators=(",", ":")).encode()).decode()


class TestEncryptor:
    """Tests for encrypt/decrypt."""

    def test_round_trip(self, private_key: RSAPrivateKey) -> None:
        """Test decrypt(encrypt(x)) == x."""
        encryptor = Encryptor(private_key)
        artifact = encryptor.encrypt('{"licensee":{"Name":"Zoë"}}')

        assert encryptor.decrypt(artifact) == '{"licensee":{"Name":"Zoë"}}'

    def test_public_key_decrypts(self, private_key: RSAPrivateKey) -> None:
        """Test the public key alone can decrypt."""
        artifact = Encryptor(private_key).encrypt(b"payload")
        assert Encryptor(private_key.public_key()).decrypt(artifact) == "payload"

    def test_public_key_cannot_encrypt(self, private_key: RSAPrivateKey) -> None:
        """Test issuing requires the private key."""
        with pytest.raises(EncryptorError, match="private key"):
            Encryptor(private_key.public_key()).encrypt("payload")

    def test_no_key(self) -> None:
        """Test a keyless encryptor fails on use."""
        with pytest.raises(EncryptorError):
            Encryptor(None).encrypt("payload")
        with pytest.raises(EncryptorError):
            Encryptor(None).decrypt("payload")

    def test_artifacts_are_randomized(self, private_key: RSAPrivateKey) -> None:
        """Test equal payloads give different artifacts."""
        encryptor = Encryptor(private_key)
        assert encryptor.encrypt("payload") != encryptor.encrypt("payload")

    def test_envelope_fields(self, private_key: RSAPrivateKey) -> None:
        """Test the artifact is a base64 JSON envelope without the plaintext."""
        artifact = Encryptor(private_key).encrypt("secret-licensee")
        envelope = _envelope(artifact)

        assert set(envelope) == {"data", "key", "iv", "signature"}
        assert len(base64.b64decode(envelope["iv"])) == 12
        assert b"secret-licensee" not in base64.b64decode(envelope["data"])

    def test_whitespace_ignored(self, private_key: RSAPrivateKey) -> None:
        """Test line-wrapped artifacts decrypt."""
        encryptor = Encryptor(private_key)
        artifact = encryptor.encrypt("payload")
        wrapped = "\n".join(artifact[i : i + 64] for i in range(0, len(artifact), 64))

        assert encryptor.decrypt(wrapped + "\n") == "payload"

    def test_wrong_key(self, private_key: RSAPrivateKey, other_private_key: RSAPrivateKey) -> None:
        """Test another key cannot decrypt."""
        artifact = Encryptor(private_key).encrypt("payload")

        with pytest.raises(EncryptorError):
            Encryptor(other_private_key).decrypt(artifact)

    def test_swapped_ciphertext_rejected(self, private_key: RSAPrivateKey) -> None:
        """Test fields from two artifacts cannot be mixed."""
        encryptor = Encryptor(private_key)
        first = _envelope(encryptor.encrypt("first"))
        second = _envelope(encryptor.encrypt("second"))
        first["data"] = second["data"]

        with pytest.raises(EncryptorError):
            encryptor.decrypt(_rebuild(first))

    def test_resigned_by_other_key_rejected(
        self, private_key: RSAPrivateKey, other_private_key: RSAPrivateKey
    ) -> None:
        """Test an artifact issued by another key is rejected."""
        forged = Encryptor(other_private_key).encrypt("payload")

        with pytest.raises(EncryptorError):
            Encryptor(private_key.public_key()).decrypt(forged)

    @pytest.mark.parametrize(
        "artifact",
        ["", "not base64!", base64.b64encode(b"[1, 2]").decode(), base64.b64encode(b"{}").decode()],
    )
    def test_garbage_rejected(self, private_key: RSAPrivateKey, artifact: str) -> None:
        """Test malformed artifacts raise EncryptorError."""
        with pytest.raises(EncryptorError):
            Encryptor(private_key).decrypt(artifact)

    def test_non_ascii_bytes_rejected(self, private_key: RSAPrivateKey) -> None:
        """Test binary junk raises EncryptorError."""
        with pytest.raises(EncryptorError):
            Encryptor(private_key).decrypt(b"\xff\xfe\x00")
