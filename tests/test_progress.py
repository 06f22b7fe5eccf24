import io
import threading
import time

from politecrawl.monitoring.progress import CrawlSummary, ProgressReporter
from politecrawl.storage.page_budget import PageBudget


def test_page_counts_and_prints_under_one_lock():
    reporter = ProgressReporter(stream=io.StringIO())
    budget = PageBudget(10)
    for _ in range(10):
        budget.try_reserve()

    def slow_commit():
        count = budget.commit()
        # widen the gap between counting and printing
        time.sleep(0.005)
        return count

    threads = [
        threading.Thread(target=reporter.page, args=(slow_commit, "example.com", f"https://example.com/{i}", ""))
        for i in range(10)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = reporter.stream.getvalue().splitlines()
    assert [int(line.split(".", 1)[0]) for line in lines] == list(range(1, 11))
    assert all(line.split(" ", 1)[1].startswith("[example.com] https://example.com/") for line in lines)


def test_page_prefers_title_over_url():
    reporter = ProgressReporter(stream=io.StringIO())

    assert reporter.page(lambda: 3, "example.com", "https://example.com/a", "About") == 3
    assert reporter.stream.getvalue() == "3. [example.com] About\n"


def test_summary_reports_timeout_and_totals():
    reporter = ProgressReporter(stream=io.StringIO())
    reporter.summary(
        CrawlSummary(
            pages_crawled=4,
            urls_discovered=9,
            urls_visited=5,
            blocked=1,
            failed=0,
            elapsed=2.0,
            timed_out=True,
            max_runtime_seconds=2.0,
        )
    )

    lines = reporter.stream.getvalue().splitlines()
    assert lines[0] == "Crawling timed out after 2 seconds"
    assert lines[-3:] == ["Crawling completed!", "Total pages crawled: 4", "Total URLs discovered: 9"]
