"""
Renderer Client
===============

Async client for the render socket. Sends one request per connection, closes
its writing half to mark the end of the request, and reads the full response.
"""

import asyncio
import base64
import binascii
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from renderd.config.logging import get_logger
from renderd.config.settings import get_settings

logger = get_logger(__name__)


class RendererClientError(Exception):
    """Exception raised when a render request through the socket fails."""

    pass


class RendererClient:
    """Client for communicating with the render daemon."""

    def __init__(
        self, socket_path: Optional[Union[str, Path]] = None, timeout: Optional[float] = None
    ):
        self.socket_path = str(socket_path or get_settings().socket_path)
        self.timeout = timeout
        self.logger: Any = logger.bind(component="renderer_client")  # structlog.BoundLoggerBase

    async def request(self, template: Any, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a render request and return the decoded response object."""
        body = json.dumps({"template": template, "params": params or {}}).encode("utf-8")
        self.logger.debug("Sending render request", body_length=len(body))

        try:
            if self.timeout:
                raw = await asyncio.wait_for(self._exchange(body), timeout=self.timeout)
            else:
                raw = await self._exchange(body)
        except asyncio.TimeoutError:
            raise RendererClientError(f"renderer: timed out after {self.timeout:g}s")
        except OSError as e:
            raise RendererClientError(f"renderer: {e}")

        try:
            response = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RendererClientError(f"renderer(json): {e}")

        if not isinstance(response, dict):
            raise RendererClientError("renderer(json): response is not an object")
        return response

    async def render_raw(self, template: Any, params: Optional[Dict[str, Any]] = None) -> bytes:
        """
        Render a template and return the decoded image bytes.

        Raises:
            RendererClientError: On transport failure, malformed response or render error
        """
        response = await self.request(template, params)

        if response.get("error"):
            raise RendererClientError(f"renderer: {response['error']}")

        image = response.get("image")
        if not isinstance(image, str):
            raise RendererClientError("renderer: response has no image")

        try:
            return base64.b64decode(image, validate=True)
        except (binascii.Error, ValueError) as e:
            raise RendererClientError(f"renderer: {e}")

    async def _exchange(self, body: bytes) -> bytes:
        reader, writer = await asyncio.open_unix_connection(self.socket_path)
        try:
            writer.write(body)
            await writer.drain()
            writer.write_eof()
            return await reader.read()
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
