"""
Test Helpers
============

Helper functions for talking to the render socket from tests.
"""

import asyncio
import json
from typing import Any, Dict, Union
from pathlib import Path

from renderd.config.settings import Settings

__all__ = ["make_settings", "send_raw", "send_json"]


def make_settings(**overrides: Any) -> Settings:
    """Build settings isolated from any local .env file."""
    values: Dict[str, Any] = {"environment": "testing", "log_level": "DEBUG"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def send_raw(socket_path: Union[str, Path], body: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes, half-close, and read the full response."""

    async def exchange() -> bytes:
        reader, writer = await asyncio.open_unix_connection(str(socket_path))
        try:
            writer.write(body)
            await writer.drain()
            writer.write_eof()
            return await reader.read()
        finally:
            writer.close()
            await writer.wait_closed()

    return await asyncio.wait_for(exchange(), timeout=timeout)


async def send_json(socket_path: Union[str, Path], payload: Any, timeout: float = 5.0) -> Dict[str, Any]:
    """Send a JSON payload and decode the JSON response."""
    raw = await send_raw(socket_path, json.dumps(payload).encode("utf-8"), timeout)
    return json.loads(raw)
