"""
Render Service Errors
=====================

Internal error variants for request handling. Every variant is reported to the
client through the same flat ``{"error": "<message>"}`` response; the ``kind``
tag only distinguishes them in logs.
"""


class RenderServiceError(Exception):
    """Base exception for failures converted into an error response."""

    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(RenderServiceError):
    """Request bytes are not a JSON object with a usable template."""

    kind = "parse"


class RequestTooLargeError(ParseError):
    """Request body exceeded the configured maximum size."""

    def __init__(self, limit: int):
        super().__init__(f"request exceeds maximum size of {limit} bytes")
        self.limit = limit


class RenderError(RenderServiceError):
    """The rendering capability failed."""

    kind = "render"


class RenderTimeoutError(RenderError):
    """The rendering capability did not finish within the configured timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"render timed out after {timeout:g}s")
        self.timeout = timeout
