# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Configuration classes for the streaming module."""

import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


class StreamingConfig(BaseModel):
    """Main configuration for HTTP sessions and stream assembly."""

    # Connection settings
    timeout_seconds: float = Field(
        default=120.0, description="Request timeout in seconds"
    )
    chunk_size: int = Field(default=65536, description="Read chunk size in bytes")
    max_connections: int = Field(
        default=6, description="Maximum concurrent connections per host"
    )
    prefetch_segments: int = Field(
        default=1,
        description="Segments fetched ahead of the one currently being forwarded",
    )

    # Session settings
    user_agent: str = Field(
        default="StreamResolve/1.0", description="User agent for HTTP requests"
    )
    verify_ssl: bool = Field(
        default=True, description="Whether to verify SSL certificates"
    )
    custom_headers: dict[str, str] = Field(
        default_factory=dict, description="Custom HTTP headers"
    )

    # External decoder
    decoder_path: str = Field(
        default="ffmpeg", description="Executable used to remux or decode audio"
    )
    process_shutdown_timeout: float = Field(
        default=5.0,
        description="Seconds to wait for the decoder to exit before killing it",
    )
    diagnostics_limit: int = Field(
        default=65536, description="Bytes of decoder stderr kept for error reports"
    )

    # Storage settings
    temp_directory: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Parent directory for decoder scratch space",
    )
    scratch_prefix: str = Field(
        default="streamresolve-", description="Prefix of scratch directory names"
    )

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")

    # Source-specific settings
    source_settings: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Source-specific configuration"
    )

    @field_validator("timeout_seconds", "process_shutdown_timeout")
    @classmethod
    def validate_positive_time(cls, v: float) -> float:
        """Validate time values are positive."""
        if v <= 0:
            msg = "Time values must be positive"
            raise ValueError(msg)
        return v

    @field_validator("chunk_size", "max_connections", "diagnostics_limit")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer values are positive."""
        if v <= 0:
            msg = "Integer values must be positive"
            raise ValueError(msg)
        return v

    @field_validator("prefetch_segments")
    @classmethod
    def validate_prefetch(cls, v: int) -> int:
        """Validate the look-ahead window is not negative."""
        if v < 0:
            msg = "Prefetch window cannot be negative"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            msg = f"Log level must be one of {valid_levels}"
            raise ValueError(msg)
        return v.upper()

    @field_validator("temp_directory", mode="before")
    @classmethod
    def validate_temp_directory(cls, v: Any) -> Any:
        """Convert string paths to Path objects and expand user."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    def get_headers_for_source(self, source: str | None) -> dict[str, str]:
        """Get default headers merged with source-specific ones."""
        headers = {"User-Agent": self.user_agent}
        headers.update(self.custom_headers)
        if source and source in self.source_settings:
            headers.update(self.source_settings[source].get("headers", {}))
        return headers

    def get_timeout_for_source(self, source: str | None) -> float:
        """Get the request timeout for a source."""
        if source and source in self.source_settings:
            return float(
                self.source_settings[source].get("timeout_seconds", self.timeout_seconds)
            )
        return self.timeout_seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StreamingConfig":
        """Create configuration from dictionary."""
        return cls.model_validate(data)
