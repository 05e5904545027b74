"""
Hybrid RSA + AES-256-GCM encryption for license payloads.

The payload is encrypted with a fresh AES-256-GCM session key. The session
key is wrapped with the RSA private key (PKCS#1 v1.5 signature with message
recovery), so any holder of the public key can unwrap it but only the issuer
can produce it. An RSA-PSS signature over the wrapped key, nonce and
ciphertext binds the three together.

Artifact layout: base64 of the compact JSON envelope

    {"data": b64(ciphertext), "key": b64(wrapped_key),
     "iv": b64(nonce), "signature": b64(signature)}
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, ValidationError

from portable_license.errors import EncryptorError

_AES_GCM_NONCE_SIZE = 12
_SESSION_KEY_BITS = 256

# The session key travels as the "digest" of a PKCS#1 v1.5 signature, so its
# length must match the hash.
_WRAP_HASH = hashes.SHA256()

_PSS = padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.MAX_LENGTH)


class EncryptedEnvelope(BaseModel, frozen=True):
    """Base64 fields of an encrypted license payload."""

    data: str
    key: str
    iv: str
    signature: str

    model_config = {"extra": "forbid"}


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str) -> bytes:
    """Strict base64 decode that also rejects non-canonical encodings."""
    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptorError(f"Invalid base64: {e}") from e
    if _b64encode(raw) != text:
        raise EncryptorError("Invalid base64: non-canonical encoding")
    return raw


class Encryptor:
    """Encrypts and decrypts license payloads with one RSA key."""

    def __init__(self, key: RSAPrivateKey | RSAPublicKey | None):
        """
        Initialize encryptor.

        Args:
            key: RSA private key (encrypt and decrypt) or public key
                 (decrypt only). None fails on use.
        """
        self._key = key

    @property
    def key(self) -> RSAPrivateKey | RSAPublicKey | None:
        return self._key

    def _public_key(self) -> RSAPublicKey:
        if isinstance(self._key, RSAPrivateKey):
            return self._key.public_key()
        if isinstance(self._key, RSAPublicKey):
            return self._key
        raise EncryptorError("No RSA encryption key provided.")

    def encrypt(self, data: str | bytes) -> str:
        """
        Encrypt a payload.

        Args:
            data: Plaintext, str is encoded as UTF-8

        Returns:
            Base64 artifact text

        Raises:
            EncryptorError: If no private key is available
        """
        if not isinstance(self._key, RSAPrivateKey):
            raise EncryptorError("An RSA private key is required to encrypt licenses.")

        plaintext = data.encode("utf-8") if isinstance(data, str) else data

        session_key = AESGCM.generate_key(bit_length=_SESSION_KEY_BITS)
        nonce = os.urandom(_AES_GCM_NONCE_SIZE)

        wrapped_key = self._key.sign(session_key, padding.PKCS1v15(), Prehashed(_WRAP_HASH))
        ciphertext = AESGCM(session_key).encrypt(nonce, plaintext, wrapped_key)
        signature = self._key.sign(wrapped_key + nonce + ciphertext, _PSS, hashes.SHA256())

        envelope = EncryptedEnvelope(
            data=_b64encode(ciphertext),
            key=_b64encode(wrapped_key),
            iv=_b64encode(nonce),
            signature=_b64encode(signature),
        )
        return _b64encode(envelope.model_dump_json().encode("utf-8"))

    def decrypt(self, data: str | bytes) -> str:
        """
        Decrypt an artifact produced by ``encrypt``.

        Args:
            data: Base64 artifact text; whitespace is ignored

        Returns:
            Plaintext as str

        Raises:
            EncryptorError: On a wrong key, corruption or tampering
        """
        public_key = self._public_key()

        if isinstance(data, bytes):
            try:
                data = data.decode("ascii")
            except UnicodeDecodeError as e:
                raise EncryptorError("Artifact is not ASCII text") from e
        if not isinstance(data, str):
            raise EncryptorError(f"Cannot decrypt {type(data).__name__}")

        try:
            envelope = EncryptedEnvelope.model_validate_json(_b64decode("".join(data.split())))
        except ValidationError as e:
            raise EncryptorError(f"Invalid envelope: {e}") from e

        ciphertext = _b64decode(envelope.data)
        wrapped_key = _b64decode(envelope.key)
        nonce = _b64decode(envelope.iv)
        signature = _b64decode(envelope.signature)

        if len(nonce) != _AES_GCM_NONCE_SIZE:
            raise EncryptorError("Invalid nonce length")

        try:
            public_key.verify(signature, wrapped_key + nonce + ciphertext, _PSS, hashes.SHA256())
            session_key = public_key.recover_data_from_signature(
                wrapped_key, padding.PKCS1v15(), _WRAP_HASH
            )
        except (InvalidSignature, ValueError) as e:
            raise EncryptorError("Invalid signature") from e

        try:
            plaintext = AESGCM(session_key).decrypt(nonce, ciphertext, wrapped_key)
        except (InvalidTag, ValueError) as e:
            raise EncryptorError("Payload authentication failed") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncryptorError("Payload is not UTF-8") from e
