# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Base configuration classes with common functionality."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseConfig(BaseModel):
    """Base configuration class with common settings."""

    model_config = ConfigDict(
        # Enable validation on assignment
        validate_assignment=True,
        # Use enum values instead of enum objects in serialization
        use_enum_values=True,
        # Reject unknown keys
        extra="forbid",
        # Validate default values
        validate_default=True,
    )


class ServiceConfig(BaseConfig):
    """Base configuration for streaming services."""

    quality: str = Field(..., description="Preferred quality label")
    strict_quality: bool = Field(
        default=False,
        description="Fail instead of falling back when the quality is unavailable",
    )


class TokenBasedServiceConfig(ServiceConfig):
    """Base configuration for services using token-based authentication."""

    access_token: str = Field(default="", description="Access token for API")
    refresh_token: str = Field(default="", description="Refresh token for API")
    token_expiry: str = Field(
        default="", description="Token expiry as seconds since the epoch"
    )

    @field_validator("access_token", "refresh_token", "token_expiry")
    @classmethod
    def validate_token_fields(cls, v: str) -> str:
        """Validate token fields are strings."""
        return str(v).strip()
