"""
Core crawling logic and data structures.

The traversal is a synchronous depth-first walk: every anchor on a directory
page is resolved and dispatched in document order, and a subdirectory is
crawled to completion before the next anchor is looked at. Files are fetched
once, recorded, and never parsed for further links.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from urllib.parse import urldefrag, urljoin, urlparse

import requests
from bs4 import BeautifulSoup, ParserRejectedMarkup, SoupStrainer

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)

DEFAULT_TIMEOUT_S = 15.0


class ConfigError(ValueError):
    """Raised when crawl settings cannot be used to start a traversal."""


def validate_http_url(url: str, label: str = "URL") -> str:
    """Return ``url`` if it is an absolute http(s) URL, else raise ConfigError."""
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ConfigError(f"Invalid {label}: {url} ({e})") from e

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid {label}: {url!r} (expected http:// or https:// with a host)")
    return url


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Settings for one traversal. Read-only once constructed."""
    base_url: str
    ignored_status_codes: frozenset[int] = frozenset()
    keywords: tuple[str, ...] = ()
    ignored_extensions: tuple[str, ...] = ()
    resolve_from_page: bool = False
    max_fetches: Optional[int] = None
    timeout_s: float = DEFAULT_TIMEOUT_S

    def __post_init__(self) -> None:
        validate_http_url(self.base_url, "base URL")
        # Accept any iterable from callers, store immutable copies
        object.__setattr__(self, "ignored_status_codes", frozenset(self.ignored_status_codes))
        object.__setattr__(self, "keywords", tuple(self.keywords))
        object.__setattr__(self, "ignored_extensions", tuple(ext for ext in self.ignored_extensions if ext))

        if self.max_fetches is not None and self.max_fetches < 1:
            raise ConfigError(f"max_fetches must be positive, got {self.max_fetches}")
        if self.timeout_s <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout_s}")


@dataclass(slots=True)
class FileResult:
    """A file that was fetched with status 200."""
    url: str
    size: int
    keywords: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    directories_crawled: int = 0
    files_found: int = 0
    fetches: int = 0
    keyword_hits: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_error(self, status_code: Optional[int]) -> None:
        """Record an error by status code category."""
        if status_code is None:
            self.error_counts["connection_error"] += 1
        elif status_code >= 400:
            self.error_counts[str(status_code)] += 1


class Reporter:
    """
    Receives progress events from the traversal.

    Every method is a no-op here; subclasses pick the events they care about.
    ``is_file`` tells whether the URL was dispatched as a file or a directory.
    """

    def crawling(self, url: str, is_file: bool) -> None:
        pass

    def directory_ok(self, url: str) -> None:
        pass

    def bad_status(self, url: str, status_code: int, is_file: bool) -> None:
        pass

    def access_error(self, url: str, error: Exception, is_file: bool) -> None:
        pass

    def read_error(self, url: str, error: Exception, is_file: bool) -> None:
        pass

    def parse_error(self, url: str, error: Exception) -> None:
        pass

    def keywords_found(self, url: str, keywords: List[str]) -> None:
        pass

    def file_found(self, result: FileResult) -> None:
        pass

    def budget_exhausted(self, limit: int) -> None:
        pass


def find_keywords(body: str, keywords: Sequence[str]) -> List[str]:
    """
    Return the keywords contained in ``body``, in their configured order.

    Matching is a plain case-insensitive substring test.
    """
    if not keywords:
        return []

    body_lower = body.lower()
    return [kw for kw in keywords if kw.lower() in body_lower]


def has_ignored_extension(url: str, extensions: Iterable[str]) -> bool:
    """Check if URL ends with any of the ignored suffixes."""
    return any(url.endswith(ext) for ext in extensions if ext)


def is_within_base(url: str, base_url: str) -> bool:
    return url.startswith(base_url)


def resolve_href(href: str, base: str) -> Optional[str]:
    """
    Turn an anchor target into an absolute URL without fragment.

    Targets that already carry a scheme are kept as they are. Returns None
    when the href cannot be parsed at all.
    """
    href = href.strip()
    try:
        if not urlparse(href).scheme:
            href = urljoin(base, href)
        url, _ = urldefrag(href)
    except ValueError:
        return None
    return url


def extract_links(html: str) -> List[str]:
    """Extract all href values from <a> tags, in document order."""
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    return [a["href"] for a in soup.find_all("a", href=True)]


def decode_body(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


class CrawlSession:
    """
    State of a single traversal: visited URLs, recorded files and stats.

    ``client`` is anything with a ``requests.Session``-like ``get`` method.
    """

    def __init__(self, config: CrawlConfig, client, reporter: Optional[Reporter] = None):
        self.config = config
        self.client = client
        self.reporter = reporter or Reporter()
        self.visited: Set[str] = set()
        self.results: Dict[str, FileResult] = {}
        self.stats = CrawlStats()
        self._budget_reported = False

    def crawl(self, url: Optional[str] = None) -> None:
        """Crawl from ``url`` (the base URL by default)."""
        crawl(self.config.base_url, url or self.config.base_url, self)

    def claim(self, url: str) -> bool:
        """Mark ``url`` visited. False when it was dispatched before."""
        if url in self.visited:
            return False
        self.visited.add(url)
        return True

    def budget_left(self) -> bool:
        limit = self.config.max_fetches
        if limit is None or self.stats.fetches < limit:
            return True
        if not self._budget_reported:
            self._budget_reported = True
            self.reporter.budget_exhausted(limit)
        return False

    def fetch(self, url: str, is_file: bool):
        """Issue a GET for ``url``. Returns None on transport failure."""
        self.stats.fetches += 1
        self.reporter.crawling(url, is_file)
        try:
            return self.client.get(url, timeout=self.config.timeout_s, stream=True)
        except requests.RequestException as e:
            self.stats.record_error(None)
            self.reporter.access_error(url, e, is_file)
            return None

    def read(self, resp, url: str, is_file: bool) -> Optional[bytes]:
        """Read the whole response body. Returns None on I/O failure."""
        try:
            return resp.content
        except requests.RequestException as e:
            self.stats.record_error(None)
            self.reporter.read_error(url, e, is_file)
            return None


def crawl(base_url: str, current_url: str, session: CrawlSession) -> None:
    """
    Crawl ``current_url`` as a directory and descend into its links.

    Relative hrefs are resolved against ``base_url`` rather than the page they
    appear on, unless the config asks for ``resolve_from_page``. Only targets
    that start with ``base_url`` are followed: those ending in ``/`` are
    crawled as subdirectories, everything else is fetched as a file.

    The walk keeps one pending-link iterator per open directory on a stack,
    so a subdirectory is finished before the next link of its parent and
    the depth of the tree is not bounded by the interpreter stack.

    Failures are reported through ``session.reporter`` and never raised.
    """
    stack: List[Iterator[str]] = []
    targets = open_directory(base_url, current_url, session)
    if targets is not None:
        stack.append(targets)

    while stack:
        target = next(stack[-1], None)
        if target is None:
            stack.pop()
        elif target.endswith("/"):
            targets = open_directory(base_url, target, session)
            if targets is not None:
                stack.append(targets)
        else:
            fetch_file(target, session)


def open_directory(base_url: str, url: str, session: CrawlSession) -> Optional[Iterator[str]]:
    """
    Fetch and scan one directory page.

    Returns the in-base link targets of the page in document order, or None
    when the page was skipped, already seen, ignored or unreadable.
    """
    config = session.config
    reporter = session.reporter

    if has_ignored_extension(url, config.ignored_extensions):
        return None
    if not session.budget_left() or not session.claim(url):
        return None

    resp = session.fetch(url, is_file=False)
    if resp is None:
        return None

    with resp:
        if resp.status_code != 200:
            if resp.status_code in config.ignored_status_codes:
                return None
            # Error pages can still leak links and content, keep going
            session.stats.record_error(resp.status_code)
            reporter.bad_status(url, resp.status_code, is_file=False)
        else:
            reporter.directory_ok(url)

        body = session.read(resp, url, is_file=False)

    if body is None:
        return None

    session.stats.directories_crawled += 1
    html = decode_body(body)

    found = find_keywords(html, config.keywords)
    if found:
        session.stats.keyword_hits += 1
        reporter.keywords_found(url, found)

    try:
        hrefs = extract_links(html)
    except ParserRejectedMarkup as e:
        reporter.parse_error(url, e)
        return None

    resolve_base = url if config.resolve_from_page else base_url
    targets = []
    for href in hrefs:
        target = resolve_href(href, resolve_base)
        if target is not None and is_within_base(target, base_url):
            targets.append(target)
    return iter(targets)


def fetch_file(url: str, session: CrawlSession) -> Optional[FileResult]:
    """
    Fetch a single file and record it when it answers 200.

    Returns the recorded result, or None when the file was skipped, already
    seen, or did not answer 200.
    """
    config = session.config
    reporter = session.reporter

    if has_ignored_extension(url, config.ignored_extensions):
        return None
    if not session.budget_left() or not session.claim(url):
        return None

    resp = session.fetch(url, is_file=True)
    if resp is None:
        return None

    with resp:
        if resp.status_code != 200:
            if resp.status_code not in config.ignored_status_codes:
                session.stats.record_error(resp.status_code)
                reporter.bad_status(url, resp.status_code, is_file=True)
            return None
        body = session.read(resp, url, is_file=True)

    if body is None:
        return None

    result = FileResult(url=url, size=len(body), keywords=find_keywords(decode_body(body), config.keywords))
    session.results[url] = result
    session.stats.files_found += 1
    if result.keywords:
        session.stats.keyword_hits += 1
    reporter.file_found(result)
    return result


def run(config: CrawlConfig, client, reporter: Optional[Reporter] = None) -> CrawlSession:
    """
    Crawl from ``config.base_url`` and hand back the finished session.

    Args:
        config: Validated crawl settings.
        client: HTTP capability, normally from ``dirspy.transport.build_session``.
        reporter: Receives progress events; silent when omitted.

    Returns:
        The session holding ``visited``, ``results`` and ``stats``.
    """
    session = CrawlSession(config, client, reporter)
    session.crawl()
    return session
