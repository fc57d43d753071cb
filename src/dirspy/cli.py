"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence

from colorama import init as colorama_init

from dirspy.core import ConfigError, CrawlConfig, DEFAULT_TIMEOUT_S, run
from dirspy.report import ConsoleReporter, Palette, print_results, print_summary, results_to_json
from dirspy.transport import DEFAULT_USER_AGENT, build_session

EPILOG = """\
examples:
  dirspy -u http://example.com/
  dirspy -u http://example.com/ -i 403,404 -k password,api_key
  dirspy -u http://example.com/ -e .txt,.jpg
  dirspy -u http://example.com/ -c -p http://localhost:8080
"""


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",")]


def parse_status_codes(value: Optional[str]) -> FrozenSet[int]:
    """Parse '404, 403' into a set of codes. Non-numeric entries are skipped."""
    codes = set()
    for part in _split(value):
        try:
            codes.add(int(part))
        except ValueError:
            continue
    return frozenset(codes)


def parse_keywords(value: Optional[str]) -> List[str]:
    """Parse 'password, secret' keeping order and dropping blanks."""
    return [kw for kw in _split(value) if kw]


def parse_extensions(value: Optional[str]) -> List[str]:
    return [ext for ext in _split(value) if ext]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirspy",
        description="Crawl a web root, list reachable files and flag sensitive keywords.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-u", "--url", required=True, help="Base URL to crawl (e.g. http://example.com/)")
    parser.add_argument("-i", "--ignore-codes", help="Comma-separated HTTP status codes to ignore (e.g. '404,403,500')")
    parser.add_argument("-k", "--keywords", help="Comma-separated keywords to search in files (e.g. 'password,secret,key')")
    parser.add_argument("-e", "--ignore-ext", help="Comma-separated file extensions to ignore (e.g. '.txt,.jpg')")
    parser.add_argument("-c", "--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-p", "--proxy", help="Proxy URL for http and https (e.g. http://localhost:8080)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--max-fetches", type=int, help="Stop after this many requests")
    parser.add_argument(
        "--resolve-from-page",
        action="store_true",
        help="Resolve relative links against the page they appear on instead of the base URL",
    )
    parser.add_argument("--out", help="Write results as JSON to this path, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not print progress while crawling")
    parser.add_argument("-v", "--verbose", action="store_true", help="Announce every file fetch and print a summary")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = CrawlConfig(
            base_url=args.url,
            ignored_status_codes=parse_status_codes(args.ignore_codes),
            keywords=parse_keywords(args.keywords),
            ignored_extensions=parse_extensions(args.ignore_ext),
            resolve_from_page=args.resolve_from_page,
            max_fetches=args.max_fetches,
            timeout_s=args.timeout,
        )
        client = build_session(proxy=args.proxy, user_agent=args.user_agent)
    except ConfigError as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1

    if not args.no_color:
        colorama_init()
    palette = Palette(enabled=not args.no_color)
    reporter = None if args.quiet else ConsoleReporter(palette, verbose=args.verbose)

    with client:
        session = run(config, client, reporter)

    results = list(session.results.values())
    if args.out == "-":
        print(results_to_json(results, pretty=args.pretty))
    else:
        print_results(results, palette)
        if args.out:
            output_path = Path(args.out)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(results_to_json(results, pretty=args.pretty), encoding="utf-8")
            sys.stderr.write(f"Results written to: {output_path}\n")

    if args.verbose:
        print_summary(session.stats)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
