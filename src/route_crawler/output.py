"""
CSV output of successful route lookups.
"""
from __future__ import annotations

import csv
from pathlib import Path

from route_crawler.lookup import LookupResult

CSV_HEADER = ("Friendly url", "Microservice url", "Is k8s enabled?")


class CsvResultSink:
    """Append-only CSV file: a fixed header, then one fully quoted row per result."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.rows_written = 0

    def initialize(self) -> None:
        """Create (or truncate) the file and write the header row."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as fh:
            csv.writer(fh, lineterminator="\n").writerow(CSV_HEADER)
        self.rows_written = 0

    def append(self, result: LookupResult) -> None:
        with self.path.open("a", encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh, quoting=csv.QUOTE_ALL, lineterminator="\n")
            writer.writerow(result.as_row())
        self.rows_written += 1
