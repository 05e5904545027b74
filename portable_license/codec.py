"""
License import/export.

``LicenseCodec`` owns the active RSA key and the encryptor derived from it.
Applications either construct one and pass it around, or use the
process-wide codec through the module-level functions.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from portable_license.boundary import add_boundary, check_label, remove_boundary
from portable_license.config import LicensingSettings
from portable_license.dates import MalformedDatePolicy
from portable_license.encryptor import Encryptor
from portable_license.errors import (
    EncryptorError,
    InvalidKeyError,
    InvalidLicenseJSONError,
    LicenseDecryptionError,
    LicenseImportError,
    LicenseValidationError,
)
from portable_license.loader import load_encryption_key
from portable_license.models import License

logger = logging.getLogger(__name__)

EncryptionKey = RSAPrivateKey | RSAPublicKey


class LicenseCodec:
    """
    Encrypts licenses into artifacts and back.

    Usage:
        codec = LicenseCodec(private_key)
        artifact = codec.export_license(license_obj, boundary="Portable")
        license_obj = codec.import_license(artifact)

    The key slot and encryptor cache are guarded by a lock. Changing the key
    never affects a call already in progress: it keeps the encryptor it
    started with.
    """

    def __init__(
        self,
        encryption_key: EncryptionKey | None = None,
        *,
        malformed_dates: MalformedDatePolicy = MalformedDatePolicy.IGNORE,
    ):
        """
        Initialize codec.

        Args:
            encryption_key: RSA private key (import and export) or public key
                            (import only)
            malformed_dates: Handling of unparsable date strings on import

        Raises:
            InvalidKeyError: If encryption_key is not an RSA key
        """
        self._lock = threading.RLock()
        self._encryption_key: EncryptionKey | None = None
        self._encryptor: Encryptor | None = None
        self.malformed_dates = malformed_dates
        self.encryption_key = encryption_key

    @property
    def encryption_key(self) -> EncryptionKey | None:
        """The active RSA key."""
        with self._lock:
            return self._encryption_key

    @encryption_key.setter
    def encryption_key(self, key: EncryptionKey | None) -> None:
        if key is not None and not isinstance(key, RSAPrivateKey | RSAPublicKey):
            raise InvalidKeyError()

        with self._lock:
            self._encryption_key = key
            self._encryptor = None

        logger.debug("Encryption key set: %s", type(key).__name__ if key is not None else None)

    @property
    def encryptor(self) -> Encryptor:
        """Encryptor bound to the active key, built on first use."""
        with self._lock:
            if self._encryptor is None:
                self._encryptor = Encryptor(self._encryption_key)
            return self._encryptor

    def export_license(self, license_obj: License, boundary: str | None = None) -> str:
        """
        Export a license as an encrypted artifact.

        Args:
            license_obj: License to export
            boundary: Label for text framing, or None for the bare artifact

        Returns:
            Artifact text

        Raises:
            LicenseValidationError: If the license is invalid or holds values
                                    that cannot be serialized
            InvalidBoundaryError: If the boundary label cannot frame the artifact
            InvalidKeyError: If no private key is active
        """
        license_obj.validate_license()
        if boundary:
            check_label(boundary)

        try:
            license_json = license_obj.to_json()
        except (TypeError, ValueError) as e:
            raise LicenseValidationError(f"License cannot be serialized: {e}") from e

        try:
            data = self.encryptor.encrypt(license_json)
        except EncryptorError as e:
            raise InvalidKeyError(str(e)) from e

        if boundary:
            data = add_boundary(data, boundary)

        logger.debug("Exported license for %r", license_obj.licensee)
        return data

    def import_license(self, data: str | bytes | None) -> License:
        """
        Import a license from an artifact.

        Args:
            data: Artifact, framed or bare

        Returns:
            License object

        Raises:
            LicenseImportError: If data is missing, cannot be decrypted or
                                is not a JSON license
            IncompatibleVersionError: If the license version is not supported
        """
        if not data:
            raise LicenseImportError("No license data.")

        if isinstance(data, bytes):
            try:
                data = data.decode("ascii")
            except UnicodeDecodeError:
                logger.warning("License artifact is not ASCII text")
                raise LicenseDecryptionError() from None
        if not isinstance(data, str):
            raise LicenseImportError(f"Cannot import license from {type(data).__name__}.")

        encryptor = self.encryptor
        try:
            license_json = encryptor.decrypt(remove_boundary(data))
        except EncryptorError as e:
            logger.warning("License data could not be decrypted: %s", e)
            raise LicenseDecryptionError() from e

        try:
            attributes: Any = json.loads(license_json)
        except json.JSONDecodeError as e:
            logger.warning("License data is invalid JSON: %s", e)
            raise InvalidLicenseJSONError() from e

        if not isinstance(attributes, dict):
            logger.warning("License data is not a JSON object: %s", type(attributes).__name__)
            raise InvalidLicenseJSONError()

        license_obj = License.from_attributes(attributes, malformed_dates=self.malformed_dates)
        logger.debug("Imported license for %r", license_obj.licensee)
        return license_obj


# Global codec instance
_codec: LicenseCodec | None = None
_codec_lock = threading.Lock()


def get_codec() -> LicenseCodec:
    """
    Get the process-wide codec.

    Built on first use from ``LicensingSettings.from_env()``; the key is
    loaded from the configured PEM file when one is set.
    """
    global _codec
    with _codec_lock:
        if _codec is None:
            settings = LicensingSettings.from_env()
            key = None
            if settings.key_path is not None:
                key = load_encryption_key(settings.key_path, settings.key_password)
            _codec = LicenseCodec(key, malformed_dates=settings.malformed_dates)
        return _codec


def set_encryption_key(key: EncryptionKey | None) -> None:
    """Set the key of the process-wide codec."""
    get_codec().encryption_key = key


def get_encryption_key() -> EncryptionKey | None:
    """Get the key of the process-wide codec."""
    return get_codec().encryption_key


def export_license(license_obj: License, boundary: str | None = None) -> str:
    """Export a license with the process-wide codec."""
    return get_codec().export_license(license_obj, boundary=boundary)


def import_license(data: str | bytes | None) -> License:
    """Import a license with the process-wide codec."""
    return get_codec().import_license(data)


def reset_codec() -> None:
    """Reset the process-wide codec (for testing)."""
    global _codec
    with _codec_lock:
        _codec = None
