# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Tests for user configuration."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from streamresolve.config.services import TidalConfig
from streamresolve.config.user import UserConfig
from streamresolve.streaming.config import StreamingConfig


class TestUserConfig:
    """Test the UserConfig class."""

    def test_defaults(self):
        """Test default sections are created."""
        config = UserConfig()

        assert isinstance(config.streaming, StreamingConfig)
        assert isinstance(config.tidal, TidalConfig)
        assert config.streaming.decoder_path == "ffmpeg"

    def test_from_toml_file(self, tmp_path):
        """Test loading a TOML file."""
        path = tmp_path / "config.toml"
        path.write_text(
            "\n".join(
                [
                    "[streaming]",
                    "prefetch_segments = 3",
                    'decoder_path = "/usr/local/bin/ffmpeg"',
                    "",
                    "[tidal]",
                    'quality = "LOSSLESS"',
                    "strict_quality = true",
                    'client_id = "abc"',
                ]
            ),
            encoding="utf-8",
        )

        config = UserConfig.from_toml_file(str(path))

        assert config.streaming.prefetch_segments == 3
        assert config.streaming.decoder_path == "/usr/local/bin/ffmpeg"
        assert config.tidal.quality == "LOSSLESS"
        assert config.tidal.strict_quality is True
        assert config.tidal.client_id == "abc"

    def test_json_round_trip(self, tmp_path):
        """Test saving and loading a JSON file."""
        config = UserConfig()
        config.tidal.country_code = "US"
        config.streaming.temp_directory = tmp_path / "scratch"

        path = tmp_path / "nested" / "config.json"
        config.to_json_file(path)

        loaded = UserConfig.from_json_file(path)
        assert loaded.tidal.country_code == "US"
        assert loaded.streaming.temp_directory == Path(tmp_path / "scratch")
        assert json.loads(path.read_text(encoding="utf-8"))["tidal"]["country_code"] == "US"

    def test_unknown_section_rejected(self):
        """Test unknown top-level keys are rejected."""
        with pytest.raises(ValidationError):
            UserConfig.model_validate({"spotify": {}})

    def test_get_service_config(self):
        """Test service lookup by name."""
        config = UserConfig()

        assert config.get_service_config("TIDAL") is config.tidal
        with pytest.raises(ValueError, match="Unknown service"):
            config.get_service_config("qobuz")
