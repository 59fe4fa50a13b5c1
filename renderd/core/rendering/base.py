"""
Renderer Interface
==================

The rendering capability the daemon delegates to, plus data URL helpers.

A renderer turns ``(template, params)`` into a data URL string such as
``data:image/png;base64,iVBOR...`` or raises on failure.
"""

from abc import ABC, abstractmethod
from typing import Any
import base64


class Renderer(ABC):
    """Abstract rendering capability."""

    async def initialize(self) -> None:
        """Acquire any resources the renderer needs before serving."""

    async def close(self) -> None:
        """Release renderer resources."""

    @abstractmethod
    async def render(self, template: Any, params: Any) -> str:
        """Render a template with params and return a data URL."""
        pass


def to_data_url(data: bytes, mime_type: str) -> str:
    """Encode binary data as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def strip_data_url_prefix(data_url: str) -> str:
    """
    Remove everything up to and including the first comma.

    ``data:image/png;base64,AAAA`` becomes ``AAAA``. A string without a comma is
    returned unchanged.
    """
    _, sep, payload = data_url.partition(",")
    return payload if sep else data_url
