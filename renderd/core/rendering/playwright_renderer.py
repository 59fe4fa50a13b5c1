"""
Playwright Renderer
===================

Default rendering capability: renders a Jinja2 HTML template with the request
params, loads it into a pooled headless Chromium page, and returns the screenshot
as a data URL. Pillow handles optional PNG re-encoding and JPEG conversion.
"""

from typing import Optional, Dict, Any, List, AsyncGenerator, Tuple
import asyncio
import io
from contextlib import asynccontextmanager

import jinja2
from playwright.async_api import async_playwright, Browser, BrowserContext
from PIL import Image  # type: ignore

from renderd.config.logging import get_logger
from renderd.config.settings import Settings, get_settings
from renderd.core.errors import RenderError
from renderd.core.rendering.base import Renderer, to_data_url

logger = get_logger(__name__)

MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}


class BrowserPool:
    """Browser instance pool for efficient resource management."""

    def __init__(self, pool_size: int = 2, settings: Optional[Settings] = None):
        self.pool_size = pool_size
        self.browsers: List[Browser] = []
        self._semaphore = asyncio.Semaphore(pool_size)
        self._playwright = None
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="browser_pool")  # structlog.BoundLoggerBase

    async def initialize(self) -> None:
        """Launch the pooled browsers."""
        try:
            self._playwright = await async_playwright().start()

            for _ in range(self.pool_size):
                browser = await self._playwright.chromium.launch(
                    headless=self.settings.playwright_headless,
                    args=[
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                        "--disable-dev-shm-usage",
                    ],
                )
                self.browsers.append(browser)

            self.logger.info("Browser pool initialized", pool_size=self.pool_size)
        except Exception as e:
            self.logger.error("Failed to initialize browser pool", error=str(e))
            await self._discard_partial_pool()
            raise RenderError(f"Browser pool initialization failed: {e}")

    async def _discard_partial_pool(self) -> None:
        """Close browsers and the driver started before a failed initialization."""
        for browser in self.browsers:
            try:
                await browser.close()
            except Exception as e:
                self.logger.warning("Failed to close browser", error=str(e))
        self.browsers = []

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.warning("Failed to stop playwright", error=str(e))
            self._playwright = None

    async def close(self) -> None:
        """Close all browsers in the pool."""
        for browser in self.browsers:
            await browser.close()
        self.browsers = []

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self.logger.info("Browser pool closed")

    @asynccontextmanager
    async def get_browser(self) -> AsyncGenerator[Browser, None]:
        """Get a browser instance from the pool."""
        async with self._semaphore:
            if not self.browsers:
                raise RenderError("Browser pool not initialized")

            browser = self.browsers.pop()
            try:
                yield browser
            finally:
                self.browsers.append(browser)


class PlaywrightRenderer(Renderer):
    """Jinja2 + Playwright renderer implementation."""

    def __init__(
        self, browser_pool: Optional[BrowserPool] = None, settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="playwright_renderer")  # structlog.BoundLoggerBase
        self.browser_pool = browser_pool
        self._own_pool = browser_pool is None

        if self._own_pool:
            self.browser_pool = BrowserPool(self.settings.browser_pool_size, self.settings)

        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup Jinja2 template environment."""
        loader: Optional[jinja2.BaseLoader] = None
        if self.settings.templates_dir is not None:
            loader = jinja2.FileSystemLoader(str(self.settings.templates_dir))

        self.env = jinja2.Environment(
            loader=loader,
            autoescape=jinja2.select_autoescape(["html", "xml"], default_for_string=True),
            undefined=jinja2.StrictUndefined,
            enable_async=True,
        )

    async def initialize(self) -> None:
        if self._own_pool and self.browser_pool:
            await self.browser_pool.initialize()
        self.logger.info("Renderer initialized", image_format=self.settings.image_format)

    async def close(self) -> None:
        if self._own_pool and self.browser_pool:
            await self.browser_pool.close()
        self.logger.info("Renderer closed")

    async def render(self, template: Any, params: Any) -> str:
        """
        Render a template to an image data URL.

        Args:
            template: Template name inside ``templates_dir`` or inline Jinja2/HTML source
            params: Template context; ``width`` and ``height`` also size the viewport

        Returns:
            ``data:<mime>;base64,<payload>`` string

        Raises:
            RenderError: If the template or params are invalid or the browser fails
        """
        if not isinstance(template, str):
            raise RenderError(f"template must be a string, got {type(template).__name__}")
        if not isinstance(params, dict):
            raise RenderError(f"params must be an object, got {type(params).__name__}")

        width, height = self._viewport_size(params)
        html_content = await self._render_html(template, params)
        image_bytes = await self._screenshot(html_content, width, height)
        image_bytes = self._encode_image(image_bytes)

        return to_data_url(image_bytes, MIME_TYPES[self.settings.image_format])

    def _viewport_size(self, params: Dict[str, Any]) -> Tuple[int, int]:
        """Resolve viewport size from params, falling back to settings."""
        width = params.get("width", self.settings.default_width)
        height = params.get("height", self.settings.default_height)

        for name, value, limit in (
            ("width", width, self.settings.max_width),
            ("height", height, self.settings.max_height),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise RenderError(f"{name} must be a positive integer")
            if value > limit:
                raise RenderError(f"{name} must not exceed {limit}")

        return width, height

    def _load_template(self, template: str) -> jinja2.Template:
        """Resolve a named template, or compile the string as inline source."""
        if self.env.loader is not None and "\n" not in template and "<" not in template:
            try:
                return self.env.get_template(template)
            except jinja2.TemplateNotFound:
                self.logger.debug("Template not found by name, using inline source", name=template)
        return self.env.from_string(template)

    async def _render_html(self, template: str, params: Dict[str, Any]) -> str:
        try:
            return await self._load_template(template).render_async(params)
        except jinja2.TemplateError as e:
            raise RenderError(f"Template rendering failed: {e}")

    async def _screenshot(self, html_content: str, width: int, height: int) -> bytes:
        """Load HTML into a pooled browser page and capture it as PNG."""
        if not self.browser_pool:
            raise RenderError("Browser pool not available")

        try:
            async with self.browser_pool.get_browser() as browser:
                context = await self._create_browser_context(browser, width, height)

                try:
                    page = await context.new_page()
                    page.set_default_timeout(self.settings.playwright_timeout)
                    await page.set_content(html_content, wait_until="load")

                    full_page = self.settings.full_page
                    return await page.screenshot(
                        type="png",
                        full_page=full_page,
                        clip=None if full_page else {"x": 0, "y": 0, "width": width, "height": height},
                    )
                finally:
                    await context.close()
        except RenderError:
            raise
        except Exception as e:
            error_msg = f"Screenshot failed: {e}"
            self.logger.error("Screenshot error", error=error_msg)
            raise RenderError(error_msg)

    async def _create_browser_context(
        self, browser: Browser, width: int, height: int
    ) -> BrowserContext:
        return await browser.new_context(
            viewport={"width": width, "height": height},
            device_scale_factor=self.settings.device_scale_factor,
        )

    def _encode_image(self, png_bytes: bytes) -> bytes:
        """Convert or re-encode the screenshot according to settings."""
        image_format = self.settings.image_format
        if image_format == "png" and not self.settings.optimize_png:
            return png_bytes

        try:
            image = Image.open(io.BytesIO(png_bytes))
            output = io.BytesIO()

            if image_format == "jpeg":
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                image.save(output, format="JPEG", quality=self.settings.jpeg_quality)
            else:
                image.save(output, format="PNG", optimize=True, compress_level=9)

            encoded = output.getvalue()
        except Exception as e:
            raise RenderError(f"Image encoding failed: {e}")

        self.logger.debug(
            "Image encoded",
            image_format=image_format,
            original_size=len(png_bytes),
            encoded_size=len(encoded),
        )
        return encoded
