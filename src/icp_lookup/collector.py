"""
ICP Collector - Playwright-based registration record lookup
Handles browser automation, navigation, field extraction and retries
"""

import logging
import time
from pathlib import Path
from typing import Dict, List, Optional

from playwright.sync_api import Browser, BrowserContext, Page, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from icp_lookup.link_resolver import build_query_url, extract_info_href, resolve_detail_url
from icp_lookup.models import Result
from icp_lookup.output_writer import ResultWriter
from icp_lookup.run_metrics import RunMetrics

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.3"
)

LAUNCH_ARGS = [
    "--no-first-run",
    "--no-default-browser-check",
]

# Result field -> detail page element
FIELD_SELECTORS: Dict[str, str] = {
    "license": "td#license",
    "verify_time": "td#verifyTime",
    "com_name": "td#comName",
    "typ": "td#typ",
    "permit": "td#permit",
    "host": "td#host",
}

READY_SELECTOR = FIELD_SELECTORS["license"]


class LookupFailed(Exception):
    """Base class for recoverable per-domain lookup errors."""


class NavigationError(LookupFailed):
    """Raised when the browser fails to load a page."""


class FieldExtractionError(LookupFailed):
    """Raised when a detail page field cannot be read."""


class IcpCollector:
    """Looks up ICP records using Playwright browser automation"""

    def __init__(self, config, writer: Optional[ResultWriter] = None,
                 metrics: Optional[RunMetrics] = None):
        self.config = config
        self.writer = writer or ResultWriter(json_output=config.is_json_output())
        self.metrics = metrics or RunMetrics()
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.max_retries = self.config.get_retries()

    def start_browser(self) -> None:
        """Launch Chromium; pages are opened per domain or once, see _open_page"""
        logger.info("Starting browser...")
        self.playwright = sync_playwright().start()
        channel = self.config.get_browser_channel() or None
        executable_path = self.config.get_browser_executable_path() or None

        if executable_path and not Path(executable_path).exists():
            logger.warning("Browser executable not found: %s", executable_path)
            executable_path = None

        self.browser = self.playwright.chromium.launch(
            headless=self.config.is_headless(),
            args=LAUNCH_ARGS,
            channel=channel,
            executable_path=executable_path,
            timeout=self.config.get_launch_timeout(),
        )
        logger.info("Browser started successfully")

    def stop_browser(self) -> None:
        """Clean up browser resources"""
        self._close_page()
        try:
            if self.browser:
                self.browser.close()
        except Exception:
            logger.debug("Browser close failed", exc_info=True)
        try:
            if self.playwright:
                self.playwright.stop()
        except Exception:
            logger.debug("Playwright stop failed", exc_info=True)
        self.browser = None
        self.playwright = None
        logger.info("Browser closed")

    def _open_page(self) -> Page:
        """Return the page to use for the next domain.

        With domain isolation every domain gets a fresh context, so cookies,
        cache and history never carry over between lookups.
        """
        if self.page is not None and not self.config.isolate_domains():
            return self.page

        self._close_page()
        self.context = self.browser.new_context(
            user_agent=USER_AGENT,
            viewport={"width": 1280, "height": 800},
        )
        self.page = self.context.new_page()
        self.page.set_default_timeout(self.config.get_page_timeout())
        self.page.set_default_navigation_timeout(self.config.get_navigation_timeout())
        return self.page

    def _close_page(self) -> None:
        try:
            if self.context:
                self.context.close()
        except Exception:
            logger.debug("Browser context close failed", exc_info=True)
        self.context = None
        self.page = None

    def _safe_goto(self, page: Page, url: str) -> None:
        try:
            page.goto(url, wait_until="domcontentloaded")
        except Exception as exc:
            raise NavigationError(f"Navigation to {url} failed: {exc}") from exc

    def _wait_for_render(self, page: Page) -> None:
        """Wait for the detail page fields, bounded by the render wait."""
        render_wait = self.config.get_render_wait()
        if self.config.get_wait_strategy() == "sleep":
            time.sleep(render_wait)
            return
        try:
            page.wait_for_selector(
                READY_SELECTOR, state="attached", timeout=render_wait * 1000
            )
        except PlaywrightTimeoutError:
            logger.debug("%s not rendered after %ss, reading anyway", READY_SELECTOR, render_wait)

    def _read_fields(self, page: Page) -> Dict[str, str]:
        fields: Dict[str, str] = {}
        for name, selector in FIELD_SELECTORS.items():
            try:
                fields[name] = page.locator(selector).first.inner_text()
            except Exception as exc:
                raise FieldExtractionError(f"Could not read {selector}: {exc}") from exc
        return fields

    def lookup(self, domain: str, page: Page) -> Result:
        """Run one lookup attempt for ``domain``. Raises on any failure."""
        query_url = build_query_url(domain)

        logger.debug("Navigating to %s", query_url)
        self._safe_goto(page, query_url)

        logger.debug("Getting the page source...")
        source = page.content()
        logger.debug(source)

        logger.debug("Extracting the detail link...")
        detail_url = resolve_detail_url(extract_info_href(source))

        logger.debug("Navigating to %s", detail_url)
        self._safe_goto(page, detail_url)

        logger.debug("Waiting for elements to load...")
        self._wait_for_render(page)

        logger.debug("Extracting information...")
        fields = self._read_fields(page)
        return Result(input=domain, query_url=query_url, **fields)

    def lookup_with_retry(self, domain: str) -> Optional[Result]:
        """Look up ``domain`` up to max_retries times; print and return the result."""
        self.metrics.inc("domains")
        last_error: Optional[Exception] = None

        try:
            for attempt in range(1, self.max_retries + 1):
                self.metrics.inc("attempts")
                try:
                    page = self._open_page()
                    result = self.lookup(domain, page)
                except Exception as exc:
                    last_error = exc
                    logger.warning(
                        "Lookup failed for %s (attempt %s/%s): %s",
                        domain, attempt, self.max_retries, exc,
                    )
                    time.sleep(self.config.get_retry_delay())
                    continue

                self.writer.write(result)
                self.metrics.inc("succeeded")
                return result
        finally:
            if self.config.isolate_domains():
                self._close_page()

        logger.error("Giving up on %s after %s attempts: %s", domain, self.max_retries, last_error)
        self.metrics.inc("failed")
        return None

    def collect_all(self, domains: List[str]) -> List[Result]:
        """Look up every domain in order; failures never stop the run"""
        results = []

        try:
            self.start_browser()

            for domain in domains:
                try:
                    result = self.lookup_with_retry(domain)
                except KeyboardInterrupt:
                    logger.warning("Interrupted; stopping after %s results", len(results))
                    break
                if result is not None:
                    results.append(result)

        finally:
            self.stop_browser()
            self.metrics.finish()

        logger.info("Lookup complete: %s", self.metrics.summary())
        return results
