"""
Exceptions raised by the crawler.

ConfigError and DependencyMissingError abort the run before crawling starts.
FetchError and ServiceLookupError are per-URL failures: the crawl counts them
and moves on.
"""


class CrawlerError(Exception):
    """Base class for all crawler errors."""


class ConfigError(CrawlerError):
    """Invalid start URL, depth or other command-line setting."""


class DependencyMissingError(CrawlerError):
    """A required external program is not installed."""


class FetchError(CrawlerError):
    """The page could not be rendered."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ServiceLookupError(CrawlerError):
    """The route API call failed or returned an incomplete answer."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
