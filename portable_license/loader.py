"""
Key and license loading from the filesystem.

Searches for license files in standard locations and reads PEM keys.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.serialization import load_pem_private_key, load_pem_public_key

from portable_license.config import LicensingSettings
from portable_license.errors import InvalidKeyError, LicenseImportError

if TYPE_CHECKING:
    from portable_license.codec import LicenseCodec
    from portable_license.models import License

logger = logging.getLogger(__name__)

# License file names to search for
LICENSE_FILE_NAMES = [
    ".portable-license",
    "portable.license",
    "portable-license.txt",
]


def load_encryption_key(
    path: Path, password: str | None = None
) -> RSAPrivateKey | RSAPublicKey:
    """
    Load an RSA key from a PEM file.

    A private key is tried first, then a public key.

    Args:
        path: PEM file
        password: Passphrase for an encrypted private key

    Returns:
        RSA private or public key

    Raises:
        InvalidKeyError: If the file is unreadable or holds no RSA key
    """
    try:
        key_data = path.read_bytes()
    except OSError as e:
        raise InvalidKeyError(f"Failed to read key file {path}: {e}") from e

    secret = password.encode("utf-8") if password is not None else None
    try:
        key = load_pem_private_key(key_data, password=secret)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        try:
            key = load_pem_public_key(key_data)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise InvalidKeyError(f"Failed to load key from {path}: {e}") from e

    if not isinstance(key, RSAPrivateKey | RSAPublicKey):
        raise InvalidKeyError(f"Key in {path} is not an RSA key")

    logger.debug("Loaded %s from %s", type(key).__name__, path)
    return key


def get_license_search_paths(settings: LicensingSettings | None = None) -> list[Path]:
    """
    Get directories to search for license files, in priority order.

    The directory of a configured license path comes first, then the working
    directory, the user's home and config directories, and the system-wide
    config directory. Duplicates are dropped.

    Args:
        settings: Settings to use. Read from the environment if None.
    """
    if settings is None:
        settings = LicensingSettings.from_env()

    candidates = [Path.cwd(), Path.home(), Path.home() / ".config" / "portable-license"]
    if settings.license_path is not None:
        candidates.insert(0, settings.license_path.parent)

    if os.name != "nt":
        candidates.append(Path("/etc/portable-license"))
    elif os.environ.get("APPDATA"):
        candidates.append(Path(os.environ["APPDATA"]) / "portable-license")

    return list(dict.fromkeys(candidates))


def find_license_file(settings: LicensingSettings | None = None) -> Path | None:
    """
    Find a license file.

    A configured license path that exists wins; otherwise every search
    directory is tried with each of ``LICENSE_FILE_NAMES``.

    Args:
        settings: Settings to use. Read from the environment if None.

    Returns:
        Path to the license file, or None if there is none
    """
    if settings is None:
        settings = LicensingSettings.from_env()

    if settings.license_path is not None and settings.license_path.is_file():
        return settings.license_path

    for search_dir in get_license_search_paths(settings):
        for filename in LICENSE_FILE_NAMES:
            candidate = search_dir / filename
            if candidate.is_file():
                logger.debug("Found license file %s", candidate)
                return candidate

    return None


def read_license_file(path: Path | None = None, codec: LicenseCodec | None = None) -> License:
    """
    Read and import a license file.

    Args:
        path: License file, or None to search standard locations
        codec: Codec to import with. Uses the process-wide codec if None.

    Returns:
        Imported License object

    Raises:
        LicenseImportError: If no file is found, it is unreadable or its
                            contents cannot be imported
    """
    from portable_license.codec import get_codec

    if path is None:
        path = find_license_file()
    if path is None:
        raise LicenseImportError("No license file found.")

    try:
        data = path.read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as e:
        raise LicenseImportError(f"Failed to read license file {path}: {e}") from e

    logger.debug("Importing license from %s", path)
    return (codec or get_codec()).import_license(data)
