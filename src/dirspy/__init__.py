"""
Directory crawler that walks the links under a base URL depth-first.
Reports every reachable file with its size and any sensitive keywords found in it.
"""
from dirspy.core import (
    ConfigError,
    CrawlConfig,
    CrawlSession,
    CrawlStats,
    FileResult,
    Reporter,
    crawl,
    find_keywords,
    run,
)

__version__ = "1.0.0"
__all__ = [
    "ConfigError",
    "CrawlConfig",
    "CrawlSession",
    "CrawlStats",
    "FileResult",
    "Reporter",
    "crawl",
    "find_keywords",
    "run",
]
