"""
Crawler defaults: route API endpoints, browser settings and output paths.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
from pathlib import Path

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
)

# Route API endpoints (the scheme-stripped page URL goes in the "key" parameter)
API_BASE_URL = "https://routeapi.ma1.webmdhelios.com/pg/routebyurl"
API_BASE_URL_DEVINT = "https://routeapi.ma1.devint.webmdhelios.com/pg/routebyurl"
DEVINT_MARKER = "devint"
LOOKUP_TIMEOUT = 30.0

# Headless browser
BROWSER_CANDIDATES: Tuple[str, ...] = ("google-chrome", "chromium", "chromium-browser")
RENDER_TIMEOUT = 60.0
VIRTUAL_TIME_BUDGET_MS = 5000

DEFAULT_MAX_DEPTH = 5
DEFAULT_DELAY = 1.0
CSV_OUTPUT = "crawl_results.csv"
LOG_FILE = "crawler.log"

# Links with these schemes are never crawled
SKIP_SCHEMES: frozenset[str] = frozenset(("mailto", "tel", "javascript", "ftp", "data"))

# Non-page file extensions to skip (frozen set for O(1) lookup)
SKIP_EXTENSIONS: frozenset[str] = frozenset((
    ".pdf", ".jpg", ".jpeg", ".png", ".gif",
    ".css", ".js", ".ico", ".xml", ".zip",
    ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
))


@dataclass(slots=True)
class CrawlConfig:
    """Settings for a single crawl run, resolved from the command line."""
    start_url: str
    max_depth: int = DEFAULT_MAX_DEPTH
    output_path: Path = Path(CSV_OUTPUT)
    log_file: Path = Path(LOG_FILE)
    delay: float = DEFAULT_DELAY
    browser: Optional[str] = None
    api_url: str = API_BASE_URL
    devint_api_url: str = API_BASE_URL_DEVINT
    verbose: bool = False
