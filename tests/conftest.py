"""
Test Configuration
==================

Pytest configuration with fixtures for unit and integration tests.
Provides test settings, short Unix socket paths, and running servers backed by
fake renderers.
"""

import os

os.environ.setdefault("RENDERD_ENVIRONMENT", "testing")
os.environ.setdefault("RENDERD_LOG_LEVEL", "DEBUG")

import shutil
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio

from renderd.config.settings import Settings
from renderd.server.socket_server import RenderServer

from tests.utils.helpers import make_settings
from tests.utils.mocks import FakeRenderer


@pytest.fixture
def socket_dir() -> Generator[Path, None, None]:
    """Short temporary directory; Unix socket paths are length limited."""
    path = Path(tempfile.mkdtemp(prefix="rd", dir="/tmp"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def socket_path(socket_dir: Path) -> Path:
    return socket_dir / "renderer.sock"


@pytest.fixture
def test_settings(socket_path: Path) -> Settings:
    """Test settings pointing at the temporary socket."""
    return make_settings(socket_path=socket_path, render_timeout=5)


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest_asyncio.fixture
async def running_server(
    fake_renderer: FakeRenderer, test_settings: Settings
) -> AsyncGenerator[RenderServer, None]:
    """Started render server backed by the fake renderer."""
    server = RenderServer(fake_renderer, test_settings)
    await server.start()
    yield server
    await server.close()
