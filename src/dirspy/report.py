"""
Progress stream and result rendering.
"""
from __future__ import annotations

import json
import sys
from dataclasses import asdict
from typing import Iterable, List, Optional, TextIO

from colorama import Fore, Style

from dirspy.core import CrawlStats, FileResult, Reporter


class Palette:
    """Wraps text in ANSI colors, or leaves it alone when disabled."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def _paint(self, color: str, text: str) -> str:
        if not self.enabled:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def red(self, text: str) -> str:
        return self._paint(Fore.RED, text)

    def green(self, text: str) -> str:
        return self._paint(Fore.GREEN, text)

    def yellow(self, text: str) -> str:
        return self._paint(Fore.YELLOW, text)

    def blue(self, text: str) -> str:
        return self._paint(Fore.BLUE, text)

    def purple(self, text: str) -> str:
        return self._paint(Fore.MAGENTA, text)


class ConsoleReporter(Reporter):
    """
    Writes one line per traversal event to ``stream`` (stderr by default).

    File fetch attempts are only announced when ``verbose`` is set; their
    outcome is always written.
    """

    def __init__(self, palette: Optional[Palette] = None, stream: Optional[TextIO] = None, verbose: bool = False):
        self.palette = palette or Palette()
        self.stream = stream or sys.stderr
        self.verbose = verbose

    def _line(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def crawling(self, url: str, is_file: bool) -> None:
        if not is_file:
            self._line(f"Crawling: {url}")
        elif self.verbose:
            self._line(f"Fetching: {url}")

    def directory_ok(self, url: str) -> None:
        self._line(self.palette.green(f"[200 OK] {url}"))

    def bad_status(self, url: str, status_code: int, is_file: bool) -> None:
        if is_file:
            self._line(self.palette.yellow(f"[{status_code}] {url}"))
        else:
            self._line(self.palette.red(f"Invalid status code {url}: {status_code}"))

    def access_error(self, url: str, error: Exception, is_file: bool) -> None:
        label = "File access error" if is_file else "Access error"
        self._line(self.palette.red(f"{label} {url}: {error}"))

    def read_error(self, url: str, error: Exception, is_file: bool) -> None:
        label = "Error reading file" if is_file else "Error reading body"
        self._line(self.palette.red(f"{label} {url}: {error}"))

    def parse_error(self, url: str, error: Exception) -> None:
        self._line(self.palette.red(f"HTML parsing error {url}: {error}"))

    def keywords_found(self, url: str, keywords: List[str]) -> None:
        self._line(self.palette.blue(f"Found keywords in {url}: {', '.join(keywords)}"))

    def file_found(self, result: FileResult) -> None:
        status_msg = f"[200 OK] {result.url} ({result.size} bytes)"
        if result.keywords:
            status_msg += f" [FOUND: {', '.join(result.keywords)}]"
            self._line(self.palette.green(status_msg) + " " + self.palette.blue("[KEYWORDS FOUND]"))
        else:
            self._line(self.palette.green(status_msg))

    def budget_exhausted(self, limit: int) -> None:
        self._line(self.palette.yellow(f"Fetch limit of {limit} reached, skipping remaining links"))


def format_result(result: FileResult, palette: Palette) -> str:
    line = f"{result.url}: {result.size} bytes"
    if result.keywords:
        line += " " + palette.blue(f"[FOUND KEYWORDS: {', '.join(result.keywords)}]")
    return palette.purple("-> ") + line


def print_results(results: Iterable[FileResult], palette: Palette, stream: Optional[TextIO] = None) -> None:
    """Print the final result listing."""
    stream = stream or sys.stdout
    stream.write("\n" + palette.purple("Results:") + "\n")
    for result in results:
        stream.write(format_result(result, palette) + "\n")


def print_summary(stats: CrawlStats, stream: Optional[TextIO] = None) -> None:
    """Print crawl summary to stderr."""
    stream = stream or sys.stderr
    stream.write("=" * 50 + "\n")
    stream.write("CRAWL SUMMARY\n")
    stream.write("=" * 50 + "\n\n")

    stream.write(f"Requests issued:        {stats.fetches}\n")
    stream.write(f"Directories crawled:    {stats.directories_crawled}\n")
    stream.write(f"Files found:            {stats.files_found}\n")
    stream.write(f"Keyword hits:           {stats.keyword_hits}\n\n")

    if stats.error_counts:
        stream.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = "Connection errors" if error_type == "connection_error" else f"HTTP {error_type}"
            stream.write(f"  {label}: {count}\n")
    else:
        stream.write("No errors encountered.\n")

    stream.write("\n")


def results_to_json(results: Iterable[FileResult], pretty: bool = False) -> str:
    payload = [asdict(r) for r in results]
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)
