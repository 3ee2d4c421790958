#!/usr/bin/env python3
"""
Crawl a website and look up the serving microservice for every URL found.

Usage: ./crawler.py <starting_url> [max_depth]
"""
from route_crawler.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
