"""
Headless-browser scraper: page metadata plus a few viewport screenshots.
Browser automation itself is Playwright's job; this module only drives it.
"""

import base64
import logging
import re
from datetime import datetime, timezone
from typing import List
from urllib.parse import urljoin

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from config import (
    DEFAULT_THEME_COLOR,
    SCRAPE_NAV_TIMEOUT_MS,
    SCRAPE_USER_AGENT,
    SCRAPE_VIEWPORT,
)
from errors import UpstreamError
from schemas import ScrapedAsset, ScrapeRequest


def normalize_theme_color(value) -> str:
    """Page theme colors come in many shapes; only #RRGGBB (or #RGB) survives."""
    value = (value or "").strip()
    if re.fullmatch(r"#[0-9A-Fa-f]{6}", value):
        return value
    if re.fullmatch(r"#[0-9A-Fa-f]{3}", value):
        return "#" + "".join(c * 2 for c in value[1:])
    return DEFAULT_THEME_COLOR


def _attr(page, selector: str, attribute: str = "content"):
    element = page.query_selector(selector)
    return element.get_attribute(attribute) if element else None


class Scraper:
    """Scrapes app landing pages with a fresh Chromium per call."""

    def _capture(self, page, request: ScrapeRequest) -> ScrapedAsset:
        page.goto(request.url, wait_until="networkidle", timeout=SCRAPE_NAV_TIMEOUT_MS)
        page.wait_for_timeout(2000)

        if request.search_query and request.search_selector:
            page.fill(request.search_selector, request.search_query)
            if request.submit_selector:
                page.click(request.submit_selector)
            else:
                page.press(request.search_selector, "Enter")
            page.wait_for_timeout(request.wait_after_search)

        description = (
            _attr(page, 'meta[name="description"]')
            or _attr(page, 'meta[property="og:description"]')
            or "No description available"
        )
        logo = _attr(page, 'link[rel="icon"]', "href") or _attr(page, 'link[rel="apple-touch-icon"]', "href")
        keywords = _attr(page, 'meta[name="keywords"]')

        screenshots = []
        for index in range(request.screenshot_count):
            if index:
                position = index / request.screenshot_count
                page.evaluate("pos => window.scrollTo(0, document.documentElement.scrollHeight * pos)", position)
                page.wait_for_timeout(1000)
            image = page.screenshot(type="jpeg", quality=90, full_page=False)
            screenshots.append("data:image/jpeg;base64," + base64.b64encode(image).decode("ascii"))

        return ScrapedAsset(
            url=request.url,
            title=page.title(),
            description=description,
            screenshots=screenshots,
            logo=urljoin(request.url, logo) if logo else None,
            theme_color=normalize_theme_color(_attr(page, 'meta[name="theme-color"]')),
            keywords=[k.strip() for k in keywords.split(",") if k.strip()] if keywords else [],
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def _with_browser(self, requests_: List[ScrapeRequest], skip_failures: bool) -> List[ScrapedAsset]:
        results = []
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True, args=["--hide-scrollbars"])
            try:
                for request in requests_:
                    page = browser.new_page(viewport=SCRAPE_VIEWPORT, user_agent=SCRAPE_USER_AGENT)
                    try:
                        logging.info(f"🔎 Scraping {request.url}")
                        results.append(self._capture(page, request))
                    except PlaywrightError as e:
                        if not skip_failures:
                            raise UpstreamError(f"Failed to scrape URL: {e}")
                        logging.warning(f"Skipping {request.url}: {e}")
                    finally:
                        page.close()
            finally:
                browser.close()
        return results

    def scrape(self, request: ScrapeRequest) -> ScrapedAsset:
        return self._with_browser([request], skip_failures=False)[0]

    def scrape_many(self, urls: List[str], screenshot_count: int = 3) -> List[ScrapedAsset]:
        """Scrapes several pages in one browser. Pages that fail are skipped."""
        requests_ = [ScrapeRequest(url=url, screenshot_count=screenshot_count) for url in urls]
        results = self._with_browser(requests_, skip_failures=True)
        if not results:
            raise UpstreamError("Failed to scrape any of the given URLs")
        return results
