"""
Request Handler
===============

Turns the complete body of one connection into one response: parse the JSON
request, invoke the renderer, and strip the data URL prefix from its result.
Every failure is converted into an error response here.
"""

import asyncio
import json
from typing import Any, Optional

from pydantic import ValidationError

from renderd.config.logging import get_logger
from renderd.config.settings import Settings, get_settings
from renderd.core.errors import (
    ParseError,
    RenderError,
    RenderServiceError,
    RenderTimeoutError,
)
from renderd.core.rendering.base import Renderer, strip_data_url_prefix
from renderd.models.schemas import RenderRequest, RenderResponse

logger = get_logger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic validation error into one line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "request"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "invalid request: " + "; ".join(parts)


def parse_request(body: bytes) -> RenderRequest:
    """
    Parse a request body.

    Args:
        body: All bytes received on the connection

    Returns:
        Validated RenderRequest

    Raises:
        ParseError: If the body is not UTF-8 JSON describing an object with a template
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"request is not valid UTF-8: {e}")

    try:
        payload = json.loads(text)
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError and oversized integer literals.
        raise ParseError(f"invalid JSON: {e}")

    if not isinstance(payload, dict):
        raise ParseError(f"request must be a JSON object, got {type(payload).__name__}")

    try:
        return RenderRequest.model_validate(payload)
    except ValidationError as e:
        raise ParseError(_format_validation_error(e))


class RequestHandler:
    """Handles the request of a single connection."""

    def __init__(self, renderer: Renderer, settings: Optional[Settings] = None):
        self.renderer = renderer
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="request_handler")  # structlog.BoundLoggerBase

    async def handle(self, body: bytes) -> RenderResponse:
        """
        Produce the response for a request body.

        Never raises for parse or render failures; those become error responses.
        """
        try:
            request = parse_request(body)
            image = await self._render(request)
            return RenderResponse.success(image)
        except RenderServiceError as e:
            self.logger.error("Request failed", kind=e.kind, error=e.message)
            return RenderResponse.failure(e.message)

    async def _render(self, request: RenderRequest) -> str:
        """Invoke the renderer and return the base64 payload of its data URL."""
        timeout = self.settings.render_timeout
        try:
            coro = self.renderer.render(request.template, request.params)
            if timeout:
                data_url = await asyncio.wait_for(coro, timeout=timeout)
            else:
                data_url = await coro
        except asyncio.TimeoutError:
            raise RenderTimeoutError(timeout)
        except RenderServiceError:
            raise
        except Exception as e:
            raise RenderError(str(e) or type(e).__name__)

        if not isinstance(data_url, str):
            raise RenderError(
                f"renderer returned {type(data_url).__name__} instead of a data URL string"
            )

        image = strip_data_url_prefix(data_url)
        if not image:
            raise RenderError("renderer returned an empty image")

        self.logger.info(
            "Render completed",
            template_length=len(request.template) if isinstance(request.template, str) else None,
            image_length=len(image),
        )
        return image
