"""
Licensing error taxonomy.

Every failure raised by import, export and key configuration is a
``LicenseError``. Primitive-level errors (cipher, base64, JSON) are caught at
the codec boundary and re-raised as one of these.
"""

from __future__ import annotations


class LicenseError(Exception):
    """Base class for all licensing errors."""


class IncompatibleVersionError(LicenseError):
    """Raised when a license declares a format version this library cannot read."""

    def __init__(self, version: object, message: str | None = None):
        self.version = version
        super().__init__(message or "Version is too new")


class LicenseValidationError(LicenseError):
    """Raised when a parsed license fails its validity rules."""


class LicenseImportError(LicenseError):
    """Raised when a license artifact cannot be turned back into a license."""


class LicenseDecryptionError(LicenseImportError):
    """The artifact could not be decrypted (wrong key, corruption, tampering)."""

    def __init__(self, message: str = "License data could not be decrypted."):
        super().__init__(message)


class InvalidLicenseJSONError(LicenseImportError):
    """The artifact decrypted to something that is not a JSON license object."""

    def __init__(self, message: str = "License data is invalid JSON."):
        super().__init__(message)


class LicenseConfigurationError(LicenseError):
    """Raised when licensing settings are unusable."""


class InvalidKeyError(LicenseConfigurationError):
    """Raised when the configured encryption key is not a usable RSA key."""

    def __init__(self, message: str = "No RSA encryption key provided."):
        super().__init__(message)


class InvalidBoundaryError(LicenseError, ValueError):
    """Raised when a boundary label cannot frame an artifact."""


class EncryptorError(Exception):
    """Raised by the encryption primitive. Never escapes the codec."""

    pass
