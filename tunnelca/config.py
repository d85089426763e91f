# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""Configuration management for tunnelca."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import PrerequisiteMissing


DEFAULT_PROPERTIES_FILE = "cert.properties"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SubjectFields:
    """Distinguished-name fields shared by server and client identities."""

    country: str
    state: str
    locality: str
    organization: str


class Settings(BaseSettings):
    """
    Settings loaded from environment variables and a properties file.

    Keys use the ``ssl_`` prefix so an existing ``cert.properties`` file
    (``ssl_ca_cn=...``, ``ssl_server_sans=...``) can be read unchanged.
    """

    model_config = SettingsConfigDict(
        env_prefix="ssl_",
        env_file=DEFAULT_PROPERTIES_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store
    store_dir: Path = Path("certs")
    manifest_path: Path = Path("clients.list")

    # Subject
    ca_cn: str = "frp-ca"
    server_cn: str = "frp-server"
    server_sans: str = "DNS:localhost,IP:127.0.0.1"
    client_cn: Optional[str] = None
    country: str = "US"
    state: str = "State"
    locality: str = "City"
    organization: str = "FRP"

    # Validity (days)
    ca_days: int = 5000
    server_days: int = 3650
    client_days: int = 365

    # Keys
    key_size: int = 2048

    # Bundles
    client_install_dir: str = "/etc/frp/ssl"

    # Logging
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{value}'")
        return level

    @model_validator(mode="after")
    def _check_policy(self) -> "Settings":
        if self.client_days <= 0:
            raise ValueError("client_days must be positive")
        if not self.client_days < self.server_days < self.ca_days:
            raise ValueError(
                "Validity policy requires client_days < server_days < ca_days "
                f"(got {self.client_days}, {self.server_days}, {self.ca_days})"
            )
        if self.key_size < 2048:
            raise ValueError(f"key_size must be at least 2048 bits, got {self.key_size}")
        return self

    @property
    def subject(self) -> SubjectFields:
        return SubjectFields(
            country=self.country,
            state=self.state,
            locality=self.locality,
            organization=self.organization,
        )

    @property
    def clients_dir(self) -> Path:
        return self.store_dir / "clients"


def load_settings(properties_file: Optional[Path] = None, **overrides) -> Settings:
    """
    Build settings once at startup.

    Args:
        properties_file: Alternate properties file (default: cert.properties)
        **overrides: Explicit values that win over file and environment

    Returns:
        Validated Settings instance

    Raises:
        PrerequisiteMissing: If an explicit properties file does not exist
        pydantic.ValidationError: If values violate the validity policy
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if properties_file is not None:
        if not Path(properties_file).is_file():
            raise PrerequisiteMissing(
                "Properties file not found",
                path=properties_file,
                remediation="Create it with ssl_* settings or omit --config",
            )
        return Settings(_env_file=properties_file, **overrides)
    return Settings(**overrides)
