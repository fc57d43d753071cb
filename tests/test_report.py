import io
import json

from colorama import Fore

from dirspy.core import CrawlStats, FileResult
from dirspy.report import ConsoleReporter, Palette, format_result, print_results, print_summary, results_to_json


def make_reporter(verbose=False):
    stream = io.StringIO()
    return ConsoleReporter(Palette(enabled=False), stream=stream, verbose=verbose), stream


def test_palette_disabled_returns_plain_text():
    assert Palette(enabled=False).red("x") == "x"
    assert Palette(enabled=True).red("x").startswith(Fore.RED)


def test_progress_lines():
    reporter, stream = make_reporter()
    reporter.crawling("http://ex.com/", is_file=False)
    reporter.crawling("http://ex.com/a.txt", is_file=True)
    reporter.directory_ok("http://ex.com/")
    reporter.bad_status("http://ex.com/x/", 500, is_file=False)
    reporter.bad_status("http://ex.com/a.txt", 403, is_file=True)
    reporter.keywords_found("http://ex.com/", ["password", "key"])

    assert stream.getvalue().splitlines() == [
        "Crawling: http://ex.com/",
        "[200 OK] http://ex.com/",
        "Invalid status code http://ex.com/x/: 500",
        "[403] http://ex.com/a.txt",
        "Found keywords in http://ex.com/: password, key",
    ]


def test_verbose_announces_file_fetches():
    reporter, stream = make_reporter(verbose=True)
    reporter.crawling("http://ex.com/a.txt", is_file=True)

    assert stream.getvalue() == "Fetching: http://ex.com/a.txt\n"


def test_file_found_lines():
    reporter, stream = make_reporter()
    reporter.file_found(FileResult("http://ex.com/a.txt", 8, ["secret"]))
    reporter.file_found(FileResult("http://ex.com/b.txt", 3))

    assert stream.getvalue().splitlines() == [
        "[200 OK] http://ex.com/a.txt (8 bytes) [FOUND: secret] [KEYWORDS FOUND]",
        "[200 OK] http://ex.com/b.txt (3 bytes)",
    ]


def test_error_lines():
    reporter, stream = make_reporter()
    reporter.access_error("http://ex.com/", OSError("refused"), is_file=False)
    reporter.access_error("http://ex.com/a.txt", OSError("refused"), is_file=True)
    reporter.read_error("http://ex.com/a.txt", OSError("cut"), is_file=True)
    reporter.parse_error("http://ex.com/", ValueError("bad"))

    assert stream.getvalue().splitlines() == [
        "Access error http://ex.com/: refused",
        "File access error http://ex.com/a.txt: refused",
        "Error reading file http://ex.com/a.txt: cut",
        "HTML parsing error http://ex.com/: bad",
    ]


def test_print_results():
    stream = io.StringIO()
    print_results(
        [FileResult("http://ex.com/a.txt", 8, ["secret", "key"]), FileResult("http://ex.com/b.txt", 0)],
        Palette(enabled=False),
        stream,
    )

    assert stream.getvalue().splitlines() == [
        "",
        "Results:",
        "-> http://ex.com/a.txt: 8 bytes [FOUND KEYWORDS: secret, key]",
        "-> http://ex.com/b.txt: 0 bytes",
    ]


def test_format_result_colors_keywords():
    line = format_result(FileResult("http://ex.com/a.txt", 1, ["k"]), Palette())
    assert Fore.BLUE + "[FOUND KEYWORDS: k]" in line


def test_results_to_json():
    payload = json.loads(results_to_json([FileResult("http://ex.com/a.txt", 8, ["secret"])]))
    assert payload == [{"url": "http://ex.com/a.txt", "size": 8, "keywords": ["secret"]}]


def test_print_summary_lists_errors():
    stats = CrawlStats(directories_crawled=2, files_found=3, fetches=6)
    stats.record_error(None)
    stats.record_error(500)
    stream = io.StringIO()
    print_summary(stats, stream)

    text = stream.getvalue()
    assert "Requests issued:        6" in text
    assert "Connection errors: 1" in text
    assert "HTTP 500: 1" in text
