"""
License record model.

A license is loaded from a loosely-typed attribute mapping (usually decrypted
JSON). Loading is lenient: wrong types are kept and only rejected by
``License.is_valid``, so one check decides whether a record is usable.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationInfo, model_validator

from portable_license.dates import DateState, MalformedDatePolicy, as_date, load_date
from portable_license.errors import IncompatibleVersionError, LicenseValidationError

if TYPE_CHECKING:
    from portable_license.codec import LicenseCodec

# Format generation written by this library
CURRENT_VERSION = 1

# Temporal attributes in wire order. `issued_at` is the legacy name for starts_at.
TEMPORAL_ATTRIBUTES: tuple[str, ...] = (
    "issued_at",
    "expires_at",
    "notify_admins_at",
    "notify_users_at",
    "block_changes_at",
)

_FIELD_FOR_ATTRIBUTE = {"issued_at": "starts_at"}


class License(BaseModel):
    """
    A software license.

    Usage:
        license_obj = License(
            licensee={"Name": "Jane Doe", "Email": "jane@example.com"},
            starts_at=date(2025, 1, 1),
            expires_at=date(2026, 1, 1),
            restrictions={"active_user_count": 25},
        )
        artifact = license_obj.export(boundary="Portable")
    """

    version: int = Field(default=CURRENT_VERSION, frozen=True)
    licensee: Any = Field(default=None, description="Licensee details, e.g. name and email")
    starts_at: Any = Field(default=None, description="First valid day (wire name: issued_at)")
    expires_at: Any = Field(default=None, description="Expiry date (None = never)")
    notify_admins_at: Any = Field(default=None, description="Start warning administrators")
    notify_users_at: Any = Field(default=None, description="Start warning users")
    block_changes_at: Any = Field(default=None, description="Stop accepting changes")
    restrictions: Any = Field(default=None, description="Feature restrictions by name")

    @model_validator(mode="before")
    @classmethod
    def _load_attributes(cls, data: Any, info: ValidationInfo) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise TypeError(f"License attributes must be a mapping, not {type(data).__name__}")

        attributes = {str(key): value for key, value in data.items()}

        policy = MalformedDatePolicy.IGNORE
        if info.context:
            policy = info.context.get("malformed_dates", policy)

        version = attributes.get("version")
        if version is None or version is False:
            version = CURRENT_VERSION
        if isinstance(version, bool) or version != CURRENT_VERSION:
            if isinstance(version, int) and version > CURRENT_VERSION:
                raise IncompatibleVersionError(version)
            raise IncompatibleVersionError(version, f"Unsupported license version: {version!r}")

        loaded: dict[str, Any] = {
            "version": CURRENT_VERSION,
            "licensee": attributes.get("licensee"),
        }

        if "issued_at" not in attributes and "starts_at" in attributes:
            attributes["issued_at"] = attributes["starts_at"]

        for name in TEMPORAL_ATTRIBUTES:
            result = load_date(name, attributes.get(name), policy)
            if result.state is DateState.SET:
                loaded[_FIELD_FOR_ATTRIBUTE.get(name, name)] = result.value

        restrictions = attributes.get("restrictions")
        if isinstance(restrictions, Mapping):
            loaded["restrictions"] = {str(key): value for key, value in restrictions.items()}

        return loaded

    @classmethod
    def from_attributes(
        cls,
        attributes: Mapping[Any, Any],
        *,
        malformed_dates: MalformedDatePolicy = MalformedDatePolicy.IGNORE,
    ) -> License:
        """
        Build a license from an attribute mapping.

        Args:
            attributes: Attribute mapping with string or other keys
            malformed_dates: Handling of unparsable date strings

        Returns:
            License object (not necessarily valid)

        Raises:
            IncompatibleVersionError: If the version is not supported
            LicenseValidationError: If a date is malformed and policy is REJECT
        """
        return cls.model_validate(attributes, context={"malformed_dates": malformed_dates})

    @classmethod
    def import_artifact(
        cls, data: str | bytes | None, codec: LicenseCodec | None = None
    ) -> License:
        """Import a license artifact with the given or the process-wide codec."""
        from portable_license.codec import get_codec

        return (codec or get_codec()).import_license(data)

    @property
    def issued_at(self) -> Any:
        """Legacy name for starts_at."""
        return self.starts_at

    @issued_at.setter
    def issued_at(self, value: Any) -> None:
        self.starts_at = value

    # Validity

    @property
    def is_valid(self) -> bool:
        """Check field types. Says nothing about who issued the license."""
        if not isinstance(self.licensee, Mapping) or len(self.licensee) == 0:
            return False
        if not isinstance(self.starts_at, date):
            return False
        for value in (
            self.expires_at,
            self.notify_admins_at,
            self.notify_users_at,
            self.block_changes_at,
        ):
            if value is not None and not isinstance(value, date):
                return False
        if self.restrictions is not None and not isinstance(self.restrictions, Mapping):
            return False
        return True

    def validate_license(self) -> None:
        """
        Require a valid license.

        Raises:
            LicenseValidationError: If the license is invalid
        """
        if not self.is_valid:
            raise LicenseValidationError("License is invalid")

    # Thresholds

    @property
    def will_expire(self) -> bool:
        return self.expires_at is not None

    @property
    def will_notify_admins(self) -> bool:
        return self.notify_admins_at is not None

    @property
    def will_notify_users(self) -> bool:
        return self.notify_users_at is not None

    @property
    def will_block_changes(self) -> bool:
        return self.block_changes_at is not None

    @property
    def is_expired(self) -> bool:
        """Check if the expiry date has been reached (inclusive)."""
        return self.will_expire and _reached(self.expires_at)

    @property
    def should_notify_admins(self) -> bool:
        return self.will_notify_admins and _reached(self.notify_admins_at)

    @property
    def should_notify_users(self) -> bool:
        return self.will_notify_users and _reached(self.notify_users_at)

    @property
    def should_block_changes(self) -> bool:
        return self.will_block_changes and _reached(self.block_changes_at)

    @property
    def days_until_expiry(self) -> int | None:
        """Calendar days until expiry, or None if the license never expires."""
        expires_on = as_date(self.expires_at)
        if expires_on is None:
            return None
        return max(0, (expires_on - date.today()).days)

    def is_restricted(self, key: str | None = None) -> bool:
        """
        Check for restrictions.

        Args:
            key: Specific restriction to look for, or None for any

        Returns:
            True if restricted (by key, if given)
        """
        if key is not None:
            return self.is_restricted() and key in self.restrictions
        return isinstance(self.restrictions, Mapping) and len(self.restrictions) >= 1

    # Serialization

    def attributes(self) -> dict[str, Any]:
        """
        Canonical attribute mapping.

        Unset optional attributes are omitted rather than written as null.
        """
        attributes: dict[str, Any] = {
            "version": self.version,
            "licensee": self.licensee,
            # `issued_at` is the wire name for starts_at until the next version.
            "issued_at": self.starts_at,
        }

        if self.will_expire:
            attributes["expires_at"] = self.expires_at
        if self.will_notify_admins:
            attributes["notify_admins_at"] = self.notify_admins_at
        if self.will_notify_users:
            attributes["notify_users_at"] = self.notify_users_at
        if self.will_block_changes:
            attributes["block_changes_at"] = self.block_changes_at
        if self.is_restricted():
            attributes["restrictions"] = self.restrictions

        return attributes

    def to_json(self) -> str:
        """Serialize canonical attributes to compact JSON."""
        return json.dumps(self.attributes(), default=_json_default, separators=(",", ":"))

    def export(self, boundary: str | None = None, codec: LicenseCodec | None = None) -> str:
        """Export with the given or the process-wide codec."""
        from portable_license.codec import get_codec

        return (codec or get_codec()).export_license(self, boundary=boundary)


def _reached(value: Any) -> bool:
    threshold = as_date(value)
    return threshold is not None and date.today() >= threshold


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
