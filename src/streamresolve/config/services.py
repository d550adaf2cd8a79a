# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Service-specific configuration classes."""

import logging

from pydantic import Field, field_validator

from streamresolve.config.base import TokenBasedServiceConfig
from streamresolve.core.utils import decode_secret, encode_secret
from streamresolve.models.enums import TidalQuality
from streamresolve.streaming.auth import Credential

logger = logging.getLogger(__name__)


class TidalConfig(TokenBasedServiceConfig):
    """Configuration for TIDAL streaming service."""

    # Quality: LOW (96kbps AAC), HIGH (320kbps AAC), LOSSLESS (16/44.1 FLAC),
    # HI_RES_LOSSLESS (up to 24/192 FLAC)
    quality: str = Field(
        default=TidalQuality.HI_RES_LOSSLESS.value, description="Preferred quality tier"
    )

    # TV application credentials
    client_id: str = Field(default="", description="TIDAL client ID (TV token)")
    client_secret: str = Field(
        default="", description="TIDAL client secret, base64-encoded"
    )

    # Additional TIDAL-specific fields
    user_id: str = Field(default="", description="TIDAL user ID")
    country_code: str = Field(default="", description="TIDAL country code")

    @field_validator("quality")
    @classmethod
    def validate_tidal_quality(cls, v: str) -> str:
        """Validate the quality is a known TIDAL tier."""
        try:
            return TidalQuality(str(v).upper()).value
        except ValueError as e:
            valid = ", ".join(q.value for q in TidalQuality)
            msg = f"TIDAL quality must be one of {valid}"
            raise ValueError(msg) from e

    def get_client_secret(self) -> str:
        """Get the decoded client secret."""
        return decode_secret(self.client_secret)

    def to_credential(self) -> Credential:
        """Build the runtime credential from the stored tokens."""
        try:
            expires_at = float(self.token_expiry) if self.token_expiry else 0.0
        except ValueError:
            logger.warning(
                "Invalid TIDAL token expiry %r, treating as expired", self.token_expiry
            )
            expires_at = 0.0

        return Credential(
            access_token=decode_secret(self.access_token),
            refresh_token=decode_secret(self.refresh_token),
            expires_at=expires_at,
            country_code=self.country_code or None,
            user_id=self.user_id or None,
        )

    def apply_credential(self, credential: Credential) -> None:
        """Store a refreshed credential back into the configuration."""
        self.access_token = encode_secret(credential.access_token)
        self.refresh_token = encode_secret(credential.refresh_token)
        self.token_expiry = str(credential.expires_at)
        if credential.country_code:
            self.country_code = credential.country_code
        if credential.user_id:
            self.user_id = credential.user_id
        logger.debug("Stored refreshed TIDAL credentials in config")
