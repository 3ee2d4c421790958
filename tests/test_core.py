"""
Tests for the frontier, visited set and the BFS crawl loop.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from route_crawler.core import CrawlStats, Frontier, VisitedSet, crawl
from route_crawler.errors import ConfigError, FetchError, ServiceLookupError
from route_crawler.lookup import LookupResult
from route_crawler.output import CsvResultSink

SEED = "https://a.com/"


def page(*hrefs):
    return "<html><body>" + "".join(f'<a href="{h}">link</a>' for h in hrefs) + "</body></html>"


class FakeFetcher:
    """Serves canned HTML and records the order pages were rendered in."""

    def __init__(self, pages, failing=()):
        self.pages = pages
        self.failing = set(failing)
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if url in self.failing:
            raise FetchError(url, "browser exited with code 1")
        return self.pages.get(url, page())


class FakeLookup:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def lookup(self, url):
        self.calls.append(url)
        if url in self.failing:
            raise ServiceLookupError(url, "incomplete response, missing serviceurl")
        return LookupResult(url, "http://svc.local/" + url.rsplit("/", 1)[-1], "true")


class ListSink:
    def __init__(self):
        self.initialized = False
        self.rows = []

    def initialize(self):
        self.initialized = True
        self.rows = []

    def append(self, result):
        self.rows.append(result)


def run_crawl(pages, max_depth, failing_fetch=(), failing_lookup=(), sink=None):
    fetcher = FakeFetcher(pages, failing_fetch)
    lookup = FakeLookup(failing_lookup)
    sink = sink if sink is not None else ListSink()
    sleeps = []
    stats = crawl(SEED, max_depth, fetcher, lookup, sink, sleep=sleeps.append)
    return stats, fetcher, lookup, sink, sleeps


# ------------------------------------------------------------------ #
# Frontier / VisitedSet
# ------------------------------------------------------------------ #

class TestFrontier(unittest.TestCase):
    def test_drain_is_fifo_and_clears(self):
        frontier = Frontier(max_depth=2)
        frontier.enqueue("https://a.com/1", 1)
        frontier.enqueue("https://a.com/2", 1)
        frontier.enqueue("https://a.com/1", 1)
        self.assertEqual(
            frontier.drain(1),
            ["https://a.com/1", "https://a.com/2", "https://a.com/1"],
        )
        self.assertEqual(frontier.drain(1), [])
        self.assertFalse(frontier.has_pending(1))

    def test_drain_unknown_depth_is_empty(self):
        self.assertEqual(Frontier(max_depth=3).drain(2), [])

    def test_enqueue_beyond_max_depth_is_skipped(self):
        frontier = Frontier(max_depth=1)
        self.assertFalse(frontier.enqueue("https://a.com/deep", 2))
        self.assertFalse(frontier.has_pending(2))
        self.assertEqual(len(frontier), 0)

    def test_depths_are_separate(self):
        frontier = Frontier(max_depth=2)
        self.assertTrue(frontier.enqueue("https://a.com/0", 0))
        frontier.enqueue("https://a.com/2", 2)
        self.assertEqual(len(frontier), 2)
        self.assertEqual(frontier.drain(0), ["https://a.com/0"])
        self.assertTrue(frontier.has_pending(2))


class TestVisitedSet(unittest.TestCase):
    def test_membership(self):
        visited = VisitedSet()
        self.assertFalse(visited.contains("https://a.com/"))
        visited.mark_visited("https://a.com/")
        visited.mark_visited("https://a.com/")
        self.assertTrue(visited.contains("https://a.com/"))
        self.assertIn("https://a.com/", visited)
        self.assertEqual(len(visited), 1)


# ------------------------------------------------------------------ #
# Crawl loop
# ------------------------------------------------------------------ #

class TestCrawl(unittest.TestCase):
    GRAPH = {
        SEED: page("/p1", "/p2", "https://other.com/x", "mailto:x@a.com", "doc.pdf"),
        "https://a.com/p1": page("/p3", "/"),
        "https://a.com/p2": page("/p3"),
        "https://a.com/p3": page("/p4"),
        "https://a.com/p4": page("/p5"),
    }
    DEPTHS = {
        SEED: 0,
        "https://a.com/p1": 1,
        "https://a.com/p2": 1,
        "https://a.com/p3": 2,
        "https://a.com/p4": 3,
    }

    def test_pages_processed_in_breadth_first_order(self):
        stats, fetcher, _, _, _ = run_crawl(self.GRAPH, max_depth=3)
        self.assertEqual(
            fetcher.calls,
            [SEED, "https://a.com/p1", "https://a.com/p2",
             "https://a.com/p3", "https://a.com/p4"],
        )
        depths = [self.DEPTHS[url] for url in fetcher.calls]
        self.assertEqual(depths, sorted(depths))
        self.assertEqual(stats.max_depth_reached, 3)
        self.assertEqual(stats.visited_count, 5)

    def test_lookups_include_seed_and_lazy_duplicates(self):
        # p3 is found on two pages of the same depth before either is visited
        stats, _, lookup, sink, sleeps = run_crawl(self.GRAPH, max_depth=3)
        self.assertEqual(
            lookup.calls,
            [SEED, "https://a.com/p1", "https://a.com/p2",
             "https://a.com/p3", "https://a.com/p3", "https://a.com/p4"],
        )
        self.assertEqual(stats.processed_count, 6)
        self.assertEqual(stats.failed_count, 0)
        self.assertEqual(len(sink.rows), stats.processed_count)
        self.assertEqual(len(sleeps), 5)

    def test_links_beyond_max_depth_not_looked_up(self):
        _, fetcher, lookup, _, _ = run_crawl(self.GRAPH, max_depth=3)
        self.assertNotIn("https://a.com/p5", lookup.calls)
        self.assertNotIn("https://a.com/p5", fetcher.calls)

    def test_duplicate_href_on_page_looked_up_once(self):
        pages = {SEED: page("/p1", "/p1#section", "https://A.com/p1")}
        with patch.object(Frontier, "enqueue", autospec=True,
                          side_effect=Frontier.enqueue) as mock_enqueue:
            _, _, lookup, _, sleeps = run_crawl(pages, max_depth=1)
        self.assertEqual(lookup.calls, [SEED, "https://a.com/p1"])
        enqueued = [c.args[1] for c in mock_enqueue.call_args_list]
        self.assertEqual(enqueued, [SEED, "https://a.com/p1"])
        self.assertEqual(sleeps, [1.0])

    def test_max_depth_zero_only_looks_up_seed(self):
        stats, fetcher, lookup, sink, sleeps = run_crawl(self.GRAPH, max_depth=0)
        self.assertEqual(lookup.calls, [SEED])
        self.assertEqual(fetcher.calls, [SEED])
        self.assertEqual(len(sink.rows), 1)
        self.assertEqual(sleeps, [])
        self.assertEqual(stats.max_depth_reached, 0)

    def test_fetch_error_is_isolated(self):
        pages = {
            SEED: page("/p1", "/p2", "/p3"),
            "https://a.com/p2": page("/p4"),
        }
        stats, fetcher, lookup, _, _ = run_crawl(
            pages, max_depth=2, failing_fetch={"https://a.com/p1"}
        )
        self.assertEqual(
            fetcher.calls,
            [SEED, "https://a.com/p1", "https://a.com/p2",
             "https://a.com/p3", "https://a.com/p4"],
        )
        self.assertEqual(stats.failed_count, 1)
        self.assertIn("https://a.com/p4", lookup.calls)
        self.assertEqual(stats.visited_count, 5)

    def test_lookup_failure_counted_and_link_still_crawled(self):
        pages = {SEED: page("/p1", "/p2")}
        stats, fetcher, _, sink, _ = run_crawl(
            pages, max_depth=1, failing_lookup={"https://a.com/p1"}
        )
        self.assertEqual(stats.failed_count, 1)
        self.assertEqual(stats.processed_count, 2)
        self.assertEqual([r.friendly_url for r in sink.rows], [SEED, "https://a.com/p2"])
        self.assertIn("https://a.com/p1", fetcher.calls)

    def test_seed_lookup_failure_does_not_stop_crawl(self):
        pages = {SEED: page("/p1")}
        stats, fetcher, _, _, _ = run_crawl(pages, max_depth=1, failing_lookup={SEED})
        self.assertEqual(fetcher.calls, [SEED, "https://a.com/p1"])
        self.assertEqual(stats.failed_count, 1)
        self.assertEqual(stats.processed_count, 1)

    def test_malformed_and_blank_hrefs_are_skipped(self):
        clean_stats, _, clean_lookup, _, _ = run_crawl({SEED: page("/p1")}, max_depth=1)
        pages = {
            SEED: page("http://[broken", "   ", "https://[::1/x#frag", "/p1"),
        }
        stats, fetcher, lookup, _, sleeps = run_crawl(pages, max_depth=1)
        self.assertEqual(lookup.calls, [SEED, "https://a.com/p1"])
        self.assertEqual(lookup.calls, clean_lookup.calls)
        self.assertEqual(fetcher.calls, [SEED, "https://a.com/p1"])
        self.assertEqual(stats, clean_stats)
        self.assertEqual(stats.failed_count, 0)
        self.assertEqual(len(sleeps), 1)

    def test_out_of_bound_links_logged_once(self):
        pages = {SEED: page("/p1")}
        with self.assertLogs("route-crawler", level="INFO") as cm:
            run_crawl(pages, max_depth=0)
        skips = [line for line in cm.output if "exceeds max depth" in line]
        self.assertEqual(len(skips), 1)
        self.assertIn("https://a.com/p1", skips[0])

    def test_stops_early_when_depth_is_empty(self):
        stats, fetcher, _, _, _ = run_crawl({SEED: page()}, max_depth=5)
        self.assertEqual(fetcher.calls, [SEED])
        self.assertEqual(stats.max_depth_reached, 0)

    def test_relative_links_resolved_against_page(self):
        pages = {
            SEED: page("/docs/index.html"),
            "https://a.com/docs/index.html": page("intro.html", "./setup.html"),
        }
        _, _, lookup, _, _ = run_crawl(pages, max_depth=2)
        self.assertEqual(
            lookup.calls[-2:],
            ["https://a.com/docs/intro.html", "https://a.com/docs/setup.html"],
        )

    def test_sink_initialized(self):
        _, _, _, sink, _ = run_crawl({}, max_depth=0)
        self.assertTrue(sink.initialized)

    def test_returns_stats(self):
        stats, _, _, _, _ = run_crawl({}, max_depth=0)
        self.assertIsInstance(stats, CrawlStats)


class TestCrawlOutputFile(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "crawl_results.csv"

    def tearDown(self):
        self._tmp.cleanup()

    def test_header_written_when_nothing_found(self):
        run_crawl({SEED: page()}, max_depth=2, failing_lookup={SEED},
                  sink=CsvResultSink(self.path))
        self.assertEqual(
            self.path.read_text(encoding="utf-8"),
            "Friendly url,Microservice url,Is k8s enabled?\n",
        )

    def test_invalid_start_leaves_output_untouched(self):
        sink = CsvResultSink(self.path)
        with self.assertRaises(ConfigError):
            crawl("ftp://a.com/", 1, FakeFetcher({}), FakeLookup(), sink)
        with self.assertRaises(ConfigError):
            crawl(SEED, -1, FakeFetcher({}), FakeLookup(), sink)
        self.assertFalse(self.path.exists())


if __name__ == "__main__":
    unittest.main()
