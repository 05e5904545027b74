"""
portable-license: encrypted, tamper-resistant software licenses.

An issuer exports a License into an opaque artifact with its RSA private
key; an application imports the artifact with the matching public key and
checks expiry, notification thresholds and restrictions.

Usage:
    from portable_license import License, LicenseCodec
    codec = LicenseCodec(private_key)
    artifact = codec.export_license(license_obj, boundary="Portable")
    license_obj = codec.import_license(artifact)
"""

from portable_license.boundary import add_boundary, remove_boundary
from portable_license.codec import (
    LicenseCodec,
    export_license,
    get_codec,
    get_encryption_key,
    import_license,
    reset_codec,
    set_encryption_key,
)
from portable_license.config import LicensingSettings
from portable_license.dates import MalformedDatePolicy
from portable_license.encryptor import Encryptor
from portable_license.errors import (
    EncryptorError,
    IncompatibleVersionError,
    InvalidBoundaryError,
    InvalidKeyError,
    InvalidLicenseJSONError,
    LicenseConfigurationError,
    LicenseDecryptionError,
    LicenseError,
    LicenseImportError,
    LicenseValidationError,
)
from portable_license.loader import (
    find_license_file,
    get_license_search_paths,
    load_encryption_key,
    read_license_file,
)
from portable_license.models import CURRENT_VERSION, License

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Models
    "License",
    "CURRENT_VERSION",
    "MalformedDatePolicy",
    # Import/export
    "LicenseCodec",
    "Encryptor",
    "add_boundary",
    "remove_boundary",
    "get_codec",
    "set_encryption_key",
    "get_encryption_key",
    "import_license",
    "export_license",
    "reset_codec",
    # Configuration and loading
    "LicensingSettings",
    "load_encryption_key",
    "find_license_file",
    "get_license_search_paths",
    "read_license_file",
    # Errors
    "LicenseError",
    "IncompatibleVersionError",
    "LicenseValidationError",
    "LicenseImportError",
    "LicenseDecryptionError",
    "InvalidLicenseJSONError",
    "LicenseConfigurationError",
    "InvalidKeyError",
    "InvalidBoundaryError",
    "EncryptorError",
]
