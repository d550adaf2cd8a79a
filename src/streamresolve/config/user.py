# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""User configuration combining streaming and service settings."""

import json
import tomllib
from pathlib import Path

from pydantic import Field

from streamresolve.config.base import BaseConfig, ServiceConfig
from streamresolve.config.services import TidalConfig
from streamresolve.streaming.config import StreamingConfig


class UserConfig(BaseConfig):
    """Main user configuration containing all sections."""

    streaming: StreamingConfig = Field(
        default_factory=StreamingConfig,
        description="HTTP and stream assembly settings",
    )

    # Service configurations
    tidal: TidalConfig = Field(
        default_factory=TidalConfig, description="TIDAL service configuration"
    )

    @classmethod
    def from_toml_file(cls, file_path: Path | str) -> "UserConfig":
        """Load configuration from a TOML file."""
        if isinstance(file_path, str):
            file_path = Path(file_path)

        with file_path.open("rb") as f:
            data = tomllib.load(f)

        return cls.model_validate(data)

    @classmethod
    def from_json_file(cls, file_path: Path | str) -> "UserConfig":
        """Load configuration from a JSON file."""
        if isinstance(file_path, str):
            file_path = Path(file_path)

        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.model_validate(data)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        return self.model_dump(mode="json")

    def to_json_file(self, file_path: Path | str) -> None:
        """Save configuration to a JSON file."""
        if isinstance(file_path, str):
            file_path = Path(file_path)

        # Ensure parent directory exists
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with file_path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def get_service_config(self, service_name: str) -> ServiceConfig:
        """Get configuration for a specific service."""
        service_map: dict[str, ServiceConfig] = {
            "tidal": self.tidal,
        }

        if service_name.lower() not in service_map:
            msg = f"Unknown service: {service_name}"
            raise ValueError(msg)

        return service_map[service_name.lower()]
