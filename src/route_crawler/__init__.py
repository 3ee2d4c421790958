"""
Web crawler that performs a depth-bounded BFS of same-host links from a start URL.
Looks up every discovered URL in the route API and writes the results to CSV.
"""
from route_crawler.core import CrawlStats, crawl
from route_crawler.lookup import LookupClient, LookupResult

__version__ = "1.0.0"
__all__ = ["crawl", "CrawlStats", "LookupClient", "LookupResult"]
