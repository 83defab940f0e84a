"""
Remote page controller built on Playwright.
Owns the single browser tab used for a run: navigates it, runs the extraction
script in it and relays heartbeats the script sends while it works.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright
from playwright.async_api import Error as PlaywrightError

from harvester.exceptions import ExtractionError, NavigationFailure
from harvester.extractor import EXTRACT_POSTS_SCRIPT, HEARTBEAT_BINDING, normalize_payload
from harvester.models import ExtractionRecord

logger = logging.getLogger(__name__)

# Clicking through to the posts view can trigger a full page load, which destroys
# the script's execution context. The script is re-run on the new document.
MAX_CONTEXT_RESTARTS = 1

_CONTEXT_DESTROYED_MARKERS = (
    "Execution context was destroyed",
    "Cannot find context with specified id",
)


class PageController:
    """
    Interface the orchestrator drives. A controller owns exactly one execution surface.
    """

    def subscribe_heartbeat(self, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    async def navigate(self, url: str) -> None:
        """Load url and return once the page reports load-complete."""
        raise NotImplementedError

    async def extract(self, origin_url: str) -> List[ExtractionRecord]:
        """Run the extraction capability and return its records (possibly none)."""
        raise NotImplementedError


class PlaywrightPageController(PageController):
    """Drives one Playwright Chromium tab."""

    def __init__(self, config):
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._heartbeat_callback: Optional[Callable[[], None]] = None

    async def __aenter__(self) -> "PlaywrightPageController":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Page controller has not been started")
        return self._page

    async def start(self) -> None:
        """Launch the browser, open the working tab and install the heartbeat binding."""
        logger.info(f"Launching Chromium ({'headless' if self.config.browser_headless else 'visible'})")
        self._playwright = await async_playwright().start()
        viewport = {'width': self.config.viewport_width, 'height': self.config.viewport_height}
        launch_options: Dict[str, Any] = {
            'headless': self.config.browser_headless,
            'args': self.config.browser_args,
        }
        if self.config.browser_channel:
            launch_options['channel'] = self.config.browser_channel

        try:
            if self.config.user_data_dir:
                logger.info(f"Using persistent browser profile: {self.config.user_data_dir}")
                self._context = await self._playwright.chromium.launch_persistent_context(
                    self.config.user_data_dir, viewport=viewport, **launch_options
                )
                pages = self._context.pages
                self._page = pages[0] if pages else await self._context.new_page()
            else:
                self._browser = await self._playwright.chromium.launch(**launch_options)
                self._context = await self._browser.new_context(viewport=viewport)
                self._page = await self._context.new_page()

            # Installed once on the context so it survives every navigation
            await self._context.expose_function(HEARTBEAT_BINDING, self._on_heartbeat)
        except Exception:
            await self.close()
            raise

        logger.debug("Browser tab ready")

    async def close(self) -> None:
        """Tear down the browser. Safe to call more than once."""
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        except PlaywrightError as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            self._page = None
            self._context = None
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

    def subscribe_heartbeat(self, callback: Callable[[], None]) -> None:
        """Register the heartbeat observer, replacing any previous one."""
        self._heartbeat_callback = callback

    def _on_heartbeat(self) -> None:
        callback = self._heartbeat_callback
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            # The page side is fire-and-forget, nothing useful can be reported back to it
            logger.warning(f"Heartbeat observer failed: {e}")

    async def navigate(self, url: str) -> None:
        """
        Load url in the working tab. No timeout: a hanging load keeps waiting.

        Raises:
            NavigationFailure: If the browser reports a load error
        """
        try:
            await self.page.goto(url, wait_until='load', timeout=0)
        except PlaywrightError as e:
            raise NavigationFailure(f"Could not load {url}: {e}") from e

    async def extract(self, origin_url: str) -> List[ExtractionRecord]:
        """
        Run the extraction script on the loaded page.

        Args:
            origin_url: Queue URL the page was opened for

        Returns:
            Normalised records, possibly empty

        Raises:
            ExtractionError: If the script fails or returns no usable response
        """
        options = dict(self.config.extraction_options(), pageUrl=origin_url)
        restarts = 0
        while True:
            try:
                payload = await self.page.evaluate(EXTRACT_POSTS_SCRIPT, options)
                break
            except PlaywrightError as e:
                if _is_context_destroyed(e) and restarts < MAX_CONTEXT_RESTARTS:
                    restarts += 1
                    logger.info(f"Page navigated during extraction of {origin_url}, re-running script")
                    await self._wait_for_document()
                    continue
                raise ExtractionError(f"Extraction script failed on {origin_url}: {e}") from e

        if payload is None:
            raise ExtractionError(f"No response from extraction script on {origin_url}")
        if not isinstance(payload, list):
            raise ExtractionError(
                f"Extraction script returned {type(payload).__name__} instead of a list on {origin_url}"
            )

        return normalize_payload(payload, origin_url)

    async def _wait_for_document(self) -> None:
        try:
            await self.page.wait_for_load_state('load', timeout=0)
        except PlaywrightError as e:
            raise ExtractionError(f"Page did not finish loading after navigation: {e}") from e
        await asyncio.sleep(self.config.settle_delay)


def _is_context_destroyed(error: Exception) -> bool:
    message = str(error)
    return any(marker in message for marker in _CONTEXT_DESTROYED_MARKERS)
