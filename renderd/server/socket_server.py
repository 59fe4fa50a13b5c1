"""
Render Socket Server
====================

Unix domain socket listener. Each accepted connection carries exactly one
request: the body is read until the peer closes its writing half, handed to the
request handler, and the single JSON response is written before the server
closes its own writing half.
"""

import asyncio
import signal
from pathlib import Path
from typing import Any, Optional

from renderd.config.logging import get_logger
from renderd.config.settings import Settings, get_settings
from renderd.core.errors import RequestTooLargeError
from renderd.core.handler import RequestHandler
from renderd.core.rendering.base import Renderer
from renderd.models.schemas import RenderResponse

logger = get_logger(__name__)


def remove_stale_socket(path: Path) -> bool:
    """
    Remove a socket file left behind by a previous run.

    Failure is logged and ignored; binding will surface any real conflict.

    Returns:
        True if a file was removed
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Failed to remove stale socket file", socket_path=str(path), error=str(e))
        return False

    logger.info("Removed stale socket file", socket_path=str(path))
    return True


async def read_request_body(
    reader: asyncio.StreamReader, max_bytes: int = 0, chunk_size: int = 64 * 1024
) -> bytes:
    """
    Read until the peer signals end of input.

    Raises:
        RequestTooLargeError: If more than ``max_bytes`` arrive (0 means unlimited)
    """
    chunks = []
    total = 0
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if max_bytes and total > max_bytes:
            raise RequestTooLargeError(max_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


class RenderServer:
    """Unix socket server dispatching each connection to the request handler."""

    def __init__(self, renderer: Renderer, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.socket_path = Path(self.settings.socket_path)
        self.renderer = renderer
        self.handler = RequestHandler(renderer, self.settings)
        self.logger: Any = logger.bind(component="socket_server")  # structlog.BoundLoggerBase
        self._server: Optional[asyncio.AbstractServer] = None

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def start(self) -> None:
        """Initialize the renderer and bind the listening socket."""
        await self.renderer.initialize()

        remove_stale_socket(self.socket_path)
        self._server = await asyncio.start_unix_server(
            self._handle_connection, path=str(self.socket_path)
        )
        self.logger.info("Renderer listening on socket", socket_path=str(self.socket_path))

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        if self._server is None:
            raise RuntimeError("Render server failed to start")
        await self._server.serve_forever()

    async def close(self) -> None:
        """Stop listening, release the renderer and remove the socket file."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

            try:
                self.socket_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                self.logger.warning(
                    "Failed to remove socket file on shutdown",
                    socket_path=str(self.socket_path),
                    error=str(e),
                )

        await self.renderer.close()
        self.logger.info("Renderer socket closed", socket_path=str(self.socket_path))

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Serve the single request carried by one connection."""
        self.logger.debug("Connection accepted")
        try:
            try:
                body = await read_request_body(
                    reader, self.settings.max_request_bytes, self.settings.read_chunk_size
                )
            except RequestTooLargeError as e:
                self.logger.error("Request rejected", kind=e.kind, error=e.message)
                response = RenderResponse.failure(e.message)
            else:
                response = await self.handler.handle(body)

            await self._write_response(writer, response)
        except OSError as e:
            self.logger.warning("Connection dropped", error=str(e))
        except Exception as e:
            self.logger.exception("Unexpected connection error")
            await self._write_fallback(writer, e)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _write_response(self, writer: asyncio.StreamWriter, response: RenderResponse) -> None:
        writer.write(response.to_bytes())
        await writer.drain()
        if writer.can_write_eof():
            writer.write_eof()

    async def _write_fallback(self, writer: asyncio.StreamWriter, error: Exception) -> None:
        """Last-resort error response so the client still receives one JSON object."""
        if writer.is_closing():
            return
        try:
            response = RenderResponse.failure(str(error) or type(error).__name__)
            await self._write_response(writer, response)
        except OSError as e:
            self.logger.warning("Connection dropped", error=str(e))


async def run_server(renderer: Optional[Renderer] = None) -> None:
    """
    Run the render daemon until SIGINT or SIGTERM.

    Args:
        renderer: Rendering capability; defaults to the Playwright renderer
    """
    if renderer is None:
        from renderd.core.rendering.playwright_renderer import PlaywrightRenderer

        renderer = PlaywrightRenderer()

    server = RenderServer(renderer)
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    logger.info("Starting render daemon...")
    try:
        await server.start()
        await shutdown_event.wait()
        logger.info("Received shutdown signal, closing render daemon...")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await server.close()
        logger.info("Render daemon stopped")
