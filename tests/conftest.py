"""
Pytest configuration and fixtures for portable-license tests.

Provides fixtures for:
- RSA key pairs (generated once per session)
- A valid license and a codec bound to the issuer key
- A clean process-wide codec and environment for every test
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from portable_license import License, LicenseCodec, reset_codec
from portable_license.config import (
    ENV_KEY_PASSWORD,
    ENV_KEY_PATH,
    ENV_LICENSE_PATH,
    ENV_MALFORMED_DATES,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

# =============================================================================
# Key Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def private_key() -> RSAPrivateKey:
    """Issuer key used to export licenses."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> RSAPrivateKey:
    """Unrelated key, for wrong-key scenarios."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


# =============================================================================
# License Fixtures
# =============================================================================


@pytest.fixture
def license_attributes() -> dict[str, object]:
    """Attributes of a valid license, as found on the wire."""
    return {
        "version": 1,
        "licensee": {"Name": "Jane Doe", "Company": "Example Corp", "Email": "jane@example.com"},
        "issued_at": "2025-01-01",
        "expires_at": "2099-01-01",
        "notify_admins_at": "2098-12-01",
        "notify_users_at": "2098-12-15",
        "block_changes_at": "2099-01-15",
        "restrictions": {"active_user_count": 25, "plan": "premium"},
    }


@pytest.fixture
def valid_license(license_attributes: dict[str, object]) -> License:
    """A valid license with every optional attribute set."""
    return License.from_attributes(license_attributes)


@pytest.fixture
def minimal_license() -> License:
    """A valid license with only the required attributes."""
    return License(licensee={"Name": "Jane Doe"}, starts_at=date(2025, 1, 1))


@pytest.fixture
def codec(private_key: RSAPrivateKey) -> LicenseCodec:
    """Codec holding the issuer key."""
    return LicenseCodec(private_key)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_licensing(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear licensing environment variables and the process-wide codec."""
    for name in (ENV_KEY_PATH, ENV_KEY_PASSWORD, ENV_LICENSE_PATH, ENV_MALFORMED_DATES):
        monkeypatch.delenv(name, raising=False)

    reset_codec()
    yield
    reset_codec()
