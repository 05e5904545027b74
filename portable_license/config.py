"""
Licensing configuration.

Settings come from the environment so an application can point the
process-wide codec at its key without code changes.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from portable_license.dates import MalformedDatePolicy
from portable_license.errors import LicenseConfigurationError

ENV_KEY_PATH = "PORTABLE_LICENSE_KEY_PATH"
ENV_KEY_PASSWORD = "PORTABLE_LICENSE_KEY_PASSWORD"
ENV_LICENSE_PATH = "PORTABLE_LICENSE_PATH"
ENV_MALFORMED_DATES = "PORTABLE_LICENSE_MALFORMED_DATES"


class LicensingSettings(BaseModel):
    """Settings for the process-wide license codec."""

    key_path: Path | None = Field(default=None, description="PEM file with the RSA key")
    key_password: str | None = Field(default=None, description="Passphrase for the private key")
    license_path: Path | None = Field(default=None, description="Explicit license file")
    malformed_dates: MalformedDatePolicy = Field(default=MalformedDatePolicy.IGNORE)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LicensingSettings:
        """
        Read settings from environment variables.

        Args:
            environ: Mapping to read from. Uses os.environ if None.

        Returns:
            LicensingSettings (unset variables keep their defaults)

        Raises:
            LicenseConfigurationError: If a variable has an invalid value
        """
        env = os.environ if environ is None else environ

        values: dict[str, object] = {}
        if env.get(ENV_KEY_PATH):
            values["key_path"] = Path(env[ENV_KEY_PATH])
        if env.get(ENV_KEY_PASSWORD):
            values["key_password"] = env[ENV_KEY_PASSWORD]
        if env.get(ENV_LICENSE_PATH):
            values["license_path"] = Path(env[ENV_LICENSE_PATH])
        if env.get(ENV_MALFORMED_DATES):
            raw = env[ENV_MALFORMED_DATES].strip().lower()
            try:
                values["malformed_dates"] = MalformedDatePolicy(raw)
            except ValueError:
                raise LicenseConfigurationError(
                    f"{ENV_MALFORMED_DATES} must be one of: "
                    + ", ".join(p.value for p in MalformedDatePolicy)
                ) from None

        return cls(**values)
