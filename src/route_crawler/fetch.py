"""
Page rendering with a headless browser and anchor extraction.
"""
from __future__ import annotations

import shutil
import subprocess
from typing import Iterable, Iterator, List, Protocol

from bs4 import BeautifulSoup, SoupStrainer

from route_crawler.config import (
    BROWSER_CANDIDATES,
    RENDER_TIMEOUT,
    USER_AGENT,
    VIRTUAL_TIME_BUDGET_MS,
)
from route_crawler.errors import DependencyMissingError, FetchError
from route_crawler.log import log

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


class PageFetcher(Protocol):
    """Anything that turns a URL into rendered HTML, raising FetchError on failure."""

    def fetch(self, url: str) -> str:
        ...


def find_browser(candidates: Iterable[str] = BROWSER_CANDIDATES) -> str:
    """Return the first Chrome/Chromium command found on PATH."""
    candidates = tuple(candidates)
    for name in candidates:
        if shutil.which(name):
            return name
    raise DependencyMissingError(
        "Missing required dependency: " + " or ".join(candidates)
    )


class ChromeFetcher:
    """Render pages with headless Chrome's ``--dump-dom``, one attempt per URL."""

    def __init__(
        self,
        binary: str,
        user_agent: str = USER_AGENT,
        virtual_time_budget_ms: int = VIRTUAL_TIME_BUDGET_MS,
        timeout: float = RENDER_TIMEOUT,
    ) -> None:
        self.binary = binary
        self.user_agent = user_agent
        self.virtual_time_budget_ms = virtual_time_budget_ms
        self.timeout = timeout

    def command(self, url: str) -> List[str]:
        return [
            self.binary,
            "--headless",
            "--disable-gpu",
            "--disable-software-rasterizer",
            "--disable-dev-shm-usage",
            "--no-sandbox",
            "--disable-extensions",
            "--disable-plugins",
            "--disable-images",
            f"--virtual-time-budget={self.virtual_time_budget_ms}",
            f"--user-agent={self.user_agent}",
            "--dump-dom",
            url,
        ]

    def fetch(self, url: str) -> str:
        log.info("Fetching HTML content with %s for: %s", self.binary, url)
        try:
            proc = subprocess.run(
                self.command(url),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise FetchError(url, f"browser timed out after {self.timeout:g}s") from None
        except OSError as e:
            raise FetchError(url, f"could not start browser: {e}") from e

        if proc.returncode != 0:
            raise FetchError(url, f"browser exited with code {proc.returncode}")
        if not proc.stdout.strip():
            raise FetchError(url, "browser returned an empty document")

        log.info("Successfully fetched HTML (%d characters) for: %s", len(proc.stdout), url)
        return proc.stdout


def extract_links(html: str) -> Iterator[str]:
    """Yield href values from <a> tags in document order (duplicates and blanks included)."""
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    for a in soup.find_all("a", href=True):
        yield a["href"]
