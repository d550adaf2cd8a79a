# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Base model classes with common functionality."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StreamResolveBaseModel(BaseModel):
    """Base model for all streamresolve models with common configuration."""

    model_config = ConfigDict(
        # Enable validation on assignment
        validate_assignment=True,
        # Allow extra fields for extensibility
        extra="allow",
        # Validate default values
        validate_default=True,
        # Enable arbitrary types for complex objects
        arbitrary_types_allowed=True,
    )


class ProviderRecord(StreamResolveBaseModel):
    """Base class for provider-native catalog records."""

    # Raw response data, kept for downstream metadata mappers
    raw_data: dict[str, Any] = Field(
        default_factory=dict, description="Raw API response"
    )

    @property
    def display_title(self) -> str:
        """Title used when presenting the record."""
        return str(getattr(self, "title", None) or getattr(self, "name", ""))
