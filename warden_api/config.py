"""
Warden API - Configuration
Connection settings loaded from environment variables.

Variables:
- WARDEN_URL                 Base URL of the Warden server (required)
- WARDEN_USERNAME            HTTP basic auth username
- WARDEN_PASSWORD            HTTP basic auth password
- WARDEN_CERTIFICATE_PATH    PEM client certificate
- WARDEN_TIMEOUT             Request timeout in seconds (default 30)
- WARDEN_SITE_KEY            Base64 Ed25519 seed used to open envelopes from Warden
"""

import os
from typing import Mapping, Optional

from nacl.encoding import Base64Encoder
from nacl.exceptions import CryptoError
from nacl.signing import SigningKey
from pydantic import BaseModel, Field, field_validator

from .transport import DEFAULT_TIMEOUT

ENV_VARS = {
    "WARDEN_URL": "warden_url",
    "WARDEN_USERNAME": "username",
    "WARDEN_PASSWORD": "password",
    "WARDEN_CERTIFICATE_PATH": "certificate_path",
    "WARDEN_TIMEOUT": "timeout",
    "WARDEN_SITE_KEY": "site_key",
}


class WardenSettings(BaseModel):
    """Settings needed to talk to a Warden server."""
    warden_url: str = Field(..., min_length=1, description="Base URL of the Warden server")
    username: str = Field(default="", description="HTTP basic auth username")
    password: str = Field(default="", description="HTTP basic auth password")
    certificate_path: str = Field(default="", description="PEM client certificate path")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    site_key: str = Field(default="", description="Base64 Ed25519 seed for opening envelopes")

    @field_validator('warden_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are appended with a leading slash."""
        v = v.strip().rstrip('/')
        if not v:
            raise ValueError("warden_url must not be empty")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WardenSettings":
        """Build settings from WARDEN_* environment variables."""
        env = os.environ if environ is None else environ
        values = {field: env[var] for var, field in ENV_VARS.items() if var in env}
        return cls(**values)

    def signing_key(self) -> Optional[SigningKey]:
        """
        Decode the configured site key.

        Returns:
            SigningKey, or None when no key is configured

        Raises:
            ValueError: the key is not a Base64 32-byte seed
        """
        if not self.site_key:
            return None
        try:
            return SigningKey(self.site_key.strip().encode('ascii'), encoder=Base64Encoder)
        except (CryptoError, ValueError, TypeError) as e:
            raise ValueError(f"WARDEN_SITE_KEY is not a valid Ed25519 seed: {e}") from e
