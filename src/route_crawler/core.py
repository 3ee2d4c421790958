"""
Core crawling logic and data structures.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Protocol, Set

from route_crawler.config import DEFAULT_DELAY
from route_crawler.errors import ConfigError, FetchError, ServiceLookupError
from route_crawler.fetch import PageFetcher, extract_links
from route_crawler.log import log
from route_crawler.lookup import LookupResult
from route_crawler.urls import (
    canonical_url,
    extract_host,
    is_followable,
    is_valid_link,
    resolve_url,
)


class LookupService(Protocol):
    def lookup(self, url: str) -> LookupResult:
        ...


class ResultSink(Protocol):
    def initialize(self) -> None:
        ...

    def append(self, result: LookupResult) -> None:
        ...


class Frontier:
    """Pending URLs bucketed by depth, FIFO within each depth."""

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self._buckets: Dict[int, List[str]] = {}

    def enqueue(self, url: str, depth: int) -> bool:
        """Queue *url* at *depth*; returns False (and queues nothing) beyond max_depth."""
        if depth > self.max_depth:
            log.info("Skipping %s - exceeds max depth %d", url, self.max_depth)
            return False
        self._buckets.setdefault(depth, []).append(url)
        return True

    def drain(self, depth: int) -> List[str]:
        """Remove and return everything queued at *depth*."""
        return self._buckets.pop(depth, [])

    def has_pending(self, depth: int) -> bool:
        return bool(self._buckets.get(depth))

    def __len__(self) -> int:
        return sum(len(urls) for urls in self._buckets.values())


class VisitedSet:
    """URLs that have begun processing."""

    def __init__(self) -> None:
        self._urls: Set[str] = set()

    def contains(self, url: str) -> bool:
        return url in self._urls

    def mark_visited(self, url: str) -> None:
        self._urls.add(url)

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    processed_count: int = 0
    failed_count: int = 0
    visited_count: int = 0
    max_depth_reached: int = 0


@dataclass(slots=True)
class CrawlState:
    """Everything the crawl loop mutates, owned by a single crawl() call."""
    seed_url: str
    seed_host: str
    max_depth: int
    frontier: Frontier
    visited: VisitedSet = field(default_factory=VisitedSet)
    stats: CrawlStats = field(default_factory=CrawlStats)


def validate_start(start_url: str, max_depth: int) -> str:
    """Check the crawl arguments and return the seed host."""
    if not start_url.startswith(("http://", "https://")):
        raise ConfigError("URL must start with http:// or https://")
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
        raise ConfigError("Max depth must be a non-negative integer")
    host = extract_host(start_url)
    if not host:
        raise ConfigError(f"URL has no host: {start_url}")
    return host


def crawl(
    start_url: str,
    max_depth: int,
    fetcher: PageFetcher,
    lookup_client: LookupService,
    sink: ResultSink,
    link_extractor: Callable[[str], Iterable[str]] = extract_links,
    delay: float = DEFAULT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> CrawlStats:
    """
    Crawl same-host links breadth-first from a URL, looking up every new link.

    The seed is looked up first, then each depth's pages are rendered in
    queue order. Every valid link found on a page that has not been visited
    yet is looked up, written to the sink on success and queued one level
    deeper. Fetch and lookup failures are counted and the crawl moves on.

    Args:
        start_url: The URL to start crawling from.
        max_depth: Deepest level to crawl; the seed is depth 0.
        fetcher: Renders a URL to HTML.
        lookup_client: Route API client.
        sink: Receives one result per successful lookup.
        link_extractor: Yields raw hrefs from rendered HTML.
        delay: Seconds to pause after each discovered-link lookup.
        sleep: Pause function (replaced in tests).

    Returns:
        Crawl statistics.

    Raises:
        ConfigError: if the start URL or depth is invalid. Nothing is
            written in that case.
    """
    seed_host = validate_start(start_url, max_depth)
    seed_url = canonical_url(start_url) or start_url
    sink.initialize()

    state = CrawlState(
        seed_url=seed_url,
        seed_host=seed_host,
        max_depth=max_depth,
        frontier=Frontier(max_depth),
    )

    log.info("Starting crawl of domain: %s (max depth: %d)", seed_host, max_depth)
    log.info("Seed URL: %s", seed_url)

    _lookup_and_record(state, seed_url, lookup_client, sink)
    state.frontier.enqueue(seed_url, 0)

    depth = 0
    while depth <= max_depth:
        if not state.frontier.has_pending(depth):
            log.info("No URLs at depth %d, crawling completed early", depth)
            break

        log.info("=== Processing depth %d ===", depth)
        state.stats.max_depth_reached = depth

        for url in state.frontier.drain(depth):
            # Duplicates may sit in a bucket; only the first occurrence is processed
            if state.visited.contains(url):
                log.debug("Already visited, skipping: %s", url)
                continue
            state.visited.mark_visited(url)
            log.info("Processing depth %d: %s", depth, url)
            _process_page(state, url, depth, fetcher, lookup_client, sink,
                          link_extractor, delay, sleep)

        log.info("Completed depth %d. URLs visited: %d", depth, len(state.visited))
        depth += 1

    state.stats.visited_count = len(state.visited)
    log.info(
        "Crawl complete. visited=%d  processed=%d  failed=%d  max_depth=%d",
        state.stats.visited_count,
        state.stats.processed_count,
        state.stats.failed_count,
        state.stats.max_depth_reached,
    )
    return state.stats


def _lookup_and_record(
    state: CrawlState,
    url: str,
    lookup_client: LookupService,
    sink: ResultSink,
) -> bool:
    """Look up one URL and write the result; failures are counted, not raised."""
    try:
        result = lookup_client.lookup(url)
    except ServiceLookupError as e:
        log.warning("Lookup failed for %s", e)
        state.stats.failed_count += 1
        return False
    sink.append(result)
    state.stats.processed_count += 1
    return True


def _process_page(
    state: CrawlState,
    url: str,
    depth: int,
    fetcher: PageFetcher,
    lookup_client: LookupService,
    sink: ResultSink,
    link_extractor: Callable[[str], Iterable[str]],
    delay: float,
    sleep: Callable[[float], None],
) -> None:
    """Render one page, then look up and queue its new same-host links."""
    try:
        html = fetcher.fetch(url)
    except FetchError as e:
        log.error("Failed to fetch HTML for %s", e)
        state.stats.failed_count += 1
        return

    next_depth = depth + 1
    page_links: Set[str] = set()
    links_found = 0
    links_added = 0

    for href in link_extractor(html):
        href = href.strip()
        if not href:
            continue
        links_found += 1

        if not is_followable(href):
            log.debug("Skipping non-page link: %s", href)
            continue

        target = canonical_url(resolve_url(url, href))
        if target is None:
            log.debug("Skipping unparseable link: %s", href)
            continue
        if not is_valid_link(target, state.seed_host):
            log.debug("Skipping invalid link: %s", target)
            continue
        if state.visited.contains(target) or target in page_links:
            continue
        page_links.add(target)

        # Links beyond max_depth are neither queued nor looked up
        if not state.frontier.enqueue(target, next_depth):
            continue
        _lookup_and_record(state, target, lookup_client, sink)
        links_added += 1
        log.info("Added to queue: %s", target)
        sleep(delay)

    log.info("Links found: %d, Added to queue: %d", links_found, links_added)
