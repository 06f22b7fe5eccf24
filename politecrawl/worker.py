import threading
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from politecrawl.fetcher import Fetcher
from politecrawl.monitoring.metrics_server import (
    CRAWLED_PAGES,
    DISCOVERED_URLS,
    FAILED_REQUESTS,
    QUEUE_PENDING,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    ROBOTS_SKIPPED,
    WORKER_ACTIVE,
    WORKER_FAILED,
    WORKER_PROCESSED,
)
from politecrawl.monitoring.progress import ProgressReporter
from politecrawl.parsing.html_extractor import extract_links, extract_title
from politecrawl.storage.frontier import Frontier
from politecrawl.storage.page_budget import PageBudget
from politecrawl.storage.visited_registry import VisitedRegistry
from politecrawl.utils.robots import RobotsPolicyCache
from politecrawl.utils.throttle import DomainThrottle, ShutdownRequested
from politecrawl.utils.url_utils import get_domain


@dataclass
class CrawledPage:
    url: str
    domain: str
    title: str
    links: int


class Worker(threading.Thread):
    """One crawl thread. All shared state is reached through the injected
    collaborators, each of which does its own locking."""

    def __init__(
        self,
        worker_id: int,
        frontier: Frontier,
        visited: VisitedRegistry,
        budget: PageBudget,
        robots: Optional[RobotsPolicyCache],
        throttle: DomainThrottle,
        fetcher: Fetcher,
        reporter: ProgressReporter,
        stop_event: threading.Event,
        poll_timeout: float = 1.0,
    ):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.worker_id = worker_id
        self.frontier = frontier
        self.visited = visited
        self.budget = budget
        self.robots = robots
        self.throttle = throttle
        self.fetcher = fetcher
        self.reporter = reporter
        self.stop_event = stop_event
        self.poll_timeout = poll_timeout
        self.log = logger.bind(worker_id=str(worker_id))

    # --------------------------
    #  Main processing
    # --------------------------
    def process_url(self, url: str) -> Optional[CrawledPage]:
        """Run the pipeline for one URL.

        Returns the crawled page, or None when the URL was already visited,
        blocked by robots.txt or could not be fetched. Discovered links are
        pushed to the frontier before returning.
        """
        worker_label = str(self.worker_id)

        if not self.visited.try_mark(url):
            self.log.trace(f"[{self.name}] Already visited: {url}")
            return None

        WORKER_PROCESSED.labels(worker_id=worker_label).inc()

        if self.robots is not None and not self.robots.is_allowed(url):
            ROBOTS_SKIPPED.labels(worker=worker_label).inc()
            self.reporter.blocked_url(url)
            self.log.info(f"[{self.name}] Blocked by robots.txt: {url}")
            return None

        domain = get_domain(url)
        self.throttle.await_turn(domain)

        REQUEST_COUNT.labels(worker=worker_label).inc()
        result = self.fetcher.fetch(url)
        REQUEST_LATENCY.labels(worker=worker_label).observe(result.elapsed)

        if not result.ok:
            FAILED_REQUESTS.labels(worker=worker_label, reason=result.error_category).inc()
            self.reporter.failed_url(url, result.error_category)
            self.log.warning(
                f"[{self.name}] Failed to fetch {url}: {result.error_category} ({result.error})"
            )
            return None

        html = result.content
        links = extract_links(html, url)

        enqueued = 0
        for link in links:
            if not self.visited.discover(link):
                continue
            if self.budget.reached():
                continue
            self.frontier.push(link)
            enqueued += 1

        QUEUE_PENDING.set(len(self.frontier))
        DISCOVERED_URLS.set(self.visited.discovered_count)

        self.log.debug(
            f"[{self.name}] Crawled: {url} ({len(html)} chars, status={result.status_code}, "
            f"links={len(links)}, enqueued={enqueued})"
        )
        return CrawledPage(url=url, domain=domain, title=extract_title(html), links=len(links))

    def _record_page(self, page: CrawledPage) -> None:
        self.reporter.page(self.budget.commit, page.domain, page.url, page.title)
        CRAWLED_PAGES.labels(worker=str(self.worker_id)).inc()

    # --------------------------
    #  Worker loop
    # --------------------------
    def run(self) -> None:
        worker_label = str(self.worker_id)
        WORKER_ACTIVE.labels(worker_id=worker_label).set(1.0)
        self.log.debug(f"{self.name} started.")

        try:
            while not self.stop_event.is_set():
                if self.budget.reached():
                    self.log.debug(f"{self.name} stopping; max_pages={self.budget.max_pages} reached")
                    break

                if not self.budget.try_reserve():
                    # every remaining page slot is held by an in-flight fetch
                    self.stop_event.wait(min(self.poll_timeout, 0.05))
                    continue

                url = self.frontier.pop(self.poll_timeout)
                if url is None:
                    self.budget.release()
                    if self.frontier.is_exhausted():
                        self.log.debug(f"{self.name} stopping; frontier exhausted")
                        break
                    continue

                page = None
                try:
                    page = self.process_url(url)
                except ShutdownRequested:
                    self.log.debug(f"{self.name} interrupted while processing {url}")
                    break
                except Exception as e:
                    WORKER_FAILED.labels(worker_id=worker_label).inc()
                    self.reporter.failed_url(url, "unexpected")
                    self.log.exception(f"[{self.name}] Error processing {url}: {e}")
                finally:
                    if page is None:
                        self.budget.release()
                    self.frontier.task_done()

                if page is not None:
                    self._record_page(page)
        finally:
            WORKER_ACTIVE.labels(worker_id=worker_label).set(0.0)
            self.log.debug(f"{self.name} finished.")
