"""SSL settings for database connections and their validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SSLMode(str, Enum):
    """Supported SSL modes."""

    REQUIRE = "require"
    DISABLE = "disable"
    VERIFY_CA = "verify-ca"
    VERIFY_FULL = "verify-full"


@dataclass
class SSLConfig:
    """SSL configuration: mode and optional certificates."""

    mode: str = ""
    server_ca: str = ""
    client_cert: str = ""
    client_key: str = ""

    def validate(self) -> None:
        """Raise ValueError if the configuration is incomplete."""
        if not self.mode:
            raise ValueError("'ssl.mode' is required parameter")
        if self.mode in (SSLMode.VERIFY_CA, SSLMode.VERIFY_FULL):
            if not self.server_ca:
                raise ValueError("'ssl.server_ca' is required parameter")
            if not self.client_cert:
                raise ValueError("'ssl.client_cert' is required parameter")
            if not self.client_key:
                raise ValueError("'ssl.client_key' is required parameter")


def validate_ssl(config: SSLConfig | None) -> None:
    """Validate an optional SSL configuration, which must be present."""
    if config is None:
        raise ValueError("'ssl' config is required")
    config.validate()