"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from route_crawler.config import (
    API_BASE_URL,
    API_BASE_URL_DEVINT,
    CSV_OUTPUT,
    DEFAULT_DELAY,
    DEFAULT_MAX_DEPTH,
    LOG_FILE,
    CrawlConfig,
)
from route_crawler.core import CrawlStats, crawl, validate_start
from route_crawler.errors import ConfigError, DependencyMissingError
from route_crawler.fetch import ChromeFetcher, find_browser
from route_crawler.log import log, setup_logging
from route_crawler.lookup import LookupClient
from route_crawler.output import CsvResultSink
from route_crawler.urls import extract_host

EPILOG = """\
Every discovered same-host URL is sent to the route API and the answer is
written to the CSV file with the columns:
  Friendly url       the URL that was processed
  Microservice url   the service URL returned by the API
  Is k8s enabled?    whether Kubernetes is enabled for this URL

Requires google-chrome, chromium or chromium-browser on PATH.

Example:
  route-crawler https://www.webmd.com 3
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def non_negative_int(value: str) -> int:
    """argparse type for the depth argument."""
    try:
        depth = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError("Max depth must be a non-negative integer") from None
    if depth < 0:
        raise argparse.ArgumentTypeError("Max depth must be a non-negative integer")
    return depth


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="route-crawler",
        description=(
            "Crawl a website up to a given depth, rendering pages with headless "
            "Chrome, and look up the serving microservice for every URL found."
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("start_url", help="URL to begin crawling (must start with http:// or https://)")
    parser.add_argument(
        "max_depth",
        nargs="?",
        type=non_negative_int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum crawl depth (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument("--out", default=CSV_OUTPUT, help=f"CSV output path (default: {CSV_OUTPUT})")
    parser.add_argument("--log-file", default=LOG_FILE, help=f"Log file path (default: {LOG_FILE})")
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_DELAY,
        help=f"Seconds to wait after each link lookup (default: {DEFAULT_DELAY:g})",
    )
    parser.add_argument("--browser", help="Chrome/Chromium command or path (default: auto-detect)")
    parser.add_argument("--api-url", default=API_BASE_URL, help="Production route API endpoint")
    parser.add_argument("--devint-api-url", default=API_BASE_URL_DEVINT, help="Devint route API endpoint")
    parser.add_argument("--verbose", action="store_true", help="Show debug messages on the console")
    return parser


def parse_config(argv: Optional[List[str]] = None) -> CrawlConfig:
    args = build_parser().parse_args(argv)
    if args.delay < 0:
        raise ConfigError("Delay must not be negative")
    validate_start(args.start_url, args.max_depth)
    return CrawlConfig(
        start_url=args.start_url,
        max_depth=args.max_depth,
        output_path=Path(args.out),
        log_file=Path(args.log_file),
        delay=args.delay,
        browser=args.browser,
        api_url=args.api_url,
        devint_api_url=args.devint_api_url,
        verbose=args.verbose,
    )


def print_summary(config: CrawlConfig, stats: CrawlStats) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("\n" + "=" * 18 + " CRAWLING COMPLETED " + "=" * 18 + "\n")
    sys.stderr.write(f"Domain crawled:         {extract_host(config.start_url)}\n")
    sys.stderr.write(f"Total URLs visited:     {stats.visited_count}\n")
    sys.stderr.write(f"Successful API calls:   {stats.processed_count}\n")
    sys.stderr.write(f"Failed calls:           {stats.failed_count}\n")
    sys.stderr.write(f"Max depth crawled:      {stats.max_depth_reached}\n\n")
    sys.stderr.write(f"Output file: {config.output_path}\n")
    sys.stderr.write(f"Log file:    {config.log_file}\n")
    sys.stderr.write("=" * 56 + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    try:
        config = parse_config(argv)
        browser = find_browser([config.browser]) if config.browser else find_browser()
    except (ConfigError, DependencyMissingError) as e:
        sys.stderr.write(f"ERROR: {e}\n")
        return 1

    try:
        setup_logging(debug=config.verbose, log_file=config.log_file)
        log.info("Using browser command: %s", browser)
        log.info("Starting URL: %s", config.start_url)

        stats = crawl(
            start_url=config.start_url,
            max_depth=config.max_depth,
            fetcher=ChromeFetcher(browser),
            lookup_client=LookupClient(config.api_url, config.devint_api_url),
            sink=CsvResultSink(config.output_path),
            delay=config.delay,
        )
    except OSError as e:
        # Unwritable output or log file
        sys.stderr.write(f"ERROR: {e}\n")
        return 1

    print_summary(config, stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
