# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Global pytest configuration for streamresolve tests."""

import sys
from unittest.mock import AsyncMock

import pytest
from fakes import FakeHttp
from tidal_payloads import NOW

from streamresolve.config.services import TidalConfig
from streamresolve.core.utils import encode_secret
from streamresolve.streaming.config import StreamingConfig
from streamresolve.streaming.session import SessionManager
from streamresolve.streaming.tidal.provider import TidalProvider

# Configure pytest-asyncio for all async tests
pytest_plugins = ["pytest_asyncio"]


def pytest_configure(config):
    """Configure pytest with asyncio markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


# Note: Async tests should be manually marked with @pytest.mark.asyncio


@pytest.fixture
def fake_http() -> FakeHttp:
    """A fresh fake HTTP session."""
    return FakeHttp()


@pytest.fixture
def streaming_config(tmp_path) -> StreamingConfig:
    """Streaming settings with scratch space under tmp_path and Python as decoder."""
    return StreamingConfig(
        temp_directory=tmp_path / "scratch",
        decoder_path=sys.executable,
        chunk_size=4,
        prefetch_segments=1,
        process_shutdown_timeout=2.0,
    )


@pytest.fixture
def session_manager(streaming_config, fake_http) -> SessionManager:
    """A session manager handing out the fake HTTP session for every source."""
    manager = SessionManager(streaming_config)
    manager.get_session = AsyncMock(return_value=fake_http)
    return manager


@pytest.fixture
def tidal_config() -> TidalConfig:
    """TIDAL settings holding an access token valid for another hour."""
    return TidalConfig(
        client_id="tv-client-id",
        client_secret=encode_secret("tv-client-secret"),
        access_token=encode_secret("access-0"),
        refresh_token=encode_secret("refresh-0"),
        token_expiry=str(NOW + 3600),
        user_id="184",
        country_code="US",
        quality="LOSSLESS",
    )


@pytest.fixture
def tidal_provider(streaming_config, session_manager, tidal_config) -> TidalProvider:
    """A TIDAL provider on the fake HTTP session with a fixed clock."""
    return TidalProvider(
        streaming_config, session_manager, tidal_config, clock=lambda: NOW
    )
