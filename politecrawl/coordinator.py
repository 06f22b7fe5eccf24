import threading
import time
from typing import List, Optional

import httpx
from loguru import logger

from politecrawl.fetcher import Fetcher
from politecrawl.monitoring.metrics_server import QUEUE_PENDING
from politecrawl.monitoring.progress import CrawlSummary, ProgressReporter
from politecrawl.storage.frontier import Frontier
from politecrawl.storage.page_budget import PageBudget
from politecrawl.storage.visited_registry import VisitedRegistry
from politecrawl.utils.config_loader import Config
from politecrawl.utils.robots import RobotsPolicyCache
from politecrawl.utils.throttle import DomainThrottle
from politecrawl.utils.url_utils import normalize_url
from politecrawl.worker import Worker

# Time allowed for the stop signal to reach idle workers, on top of one fetch.
SHUTDOWN_GRACE_SECONDS = 1.0


class Crawler:
    """Owns one crawl run: builds the shared collaborators, starts the worker
    pool and enforces the wall-clock ceiling."""

    def __init__(
        self,
        config: Config,
        reporter: Optional[ProgressReporter] = None,
        transport: Optional[httpx.BaseTransport] = None,
        respect_robots: bool = True,
    ):
        self.config = config
        self.reporter = reporter or ProgressReporter()
        self.stop_event = threading.Event()

        self.frontier = Frontier()
        self.visited = VisitedRegistry()
        self.budget = PageBudget(config.max_pages)
        self.throttle = DomainThrottle(config.crawl_delay_default, stop_event=self.stop_event)
        self.fetcher = Fetcher.from_config(config, transport=transport)
        self.robots = (
            RobotsPolicyCache(self.fetcher, config.crawler_user_agent, throttle=self.throttle)
            if respect_robots
            else None
        )
        self.workers: List[Worker] = []

    def _build_workers(self) -> List[Worker]:
        return [
            Worker(
                worker_id=i,
                frontier=self.frontier,
                visited=self.visited,
                budget=self.budget,
                robots=self.robots,
                throttle=self.throttle,
                fetcher=self.fetcher,
                reporter=self.reporter,
                stop_event=self.stop_event,
                poll_timeout=self.config.frontier_poll_timeout,
            )
            for i in range(self.config.crawler_workers)
        ]

    def stop(self) -> None:
        """Ask every worker to stop after its current step."""
        self.stop_event.set()

    def run(self, seed_url: str) -> CrawlSummary:
        seed = normalize_url(seed_url)
        self.reporter.start(seed, self.config.max_pages)
        logger.info(
            f"Crawling from {seed} with {self.config.crawler_workers} workers, "
            f"max_pages={self.config.max_pages}, delay={self.config.crawl_delay_default}s"
        )

        self.visited.discover(seed)
        self.frontier.push(seed)
        QUEUE_PENDING.set(len(self.frontier))

        started = time.monotonic()
        deadline = started + self.config.max_runtime_seconds
        self.workers = self._build_workers()
        for worker in self.workers:
            worker.start()

        timed_out = False
        try:
            timed_out = not self._join_until(deadline)
        except KeyboardInterrupt:
            logger.warning("Interrupted, stopping workers...")
            self.stop()

        if timed_out:
            logger.warning(
                f"Crawl exceeded {self.config.max_runtime_seconds}s, stopping workers..."
            )
            self.stop()

        if self.stop_event.is_set():
            grace = self.config.fetch_timeout + SHUTDOWN_GRACE_SECONDS
            if not self._join_until(time.monotonic() + grace):
                alive = [w.name for w in self.workers if w.is_alive()]
                logger.error(f"Workers still running after shutdown grace period: {alive}")

        self.fetcher.close()

        summary = CrawlSummary(
            pages_crawled=self.budget.count,
            urls_discovered=self.visited.discovered_count,
            urls_visited=len(self.visited),
            blocked=self.reporter.blocked,
            failed=self.reporter.failed,
            elapsed=time.monotonic() - started,
            timed_out=timed_out,
            max_runtime_seconds=self.config.max_runtime_seconds,
        )
        logger.info(
            f"Crawl finished: {summary.pages_crawled} pages, {summary.urls_discovered} URLs "
            f"discovered, {summary.blocked} blocked, {summary.failed} failed "
            f"in {summary.elapsed:.1f}s"
        )
        return summary

    def _join_until(self, deadline: float) -> bool:
        """Join all workers until ``deadline``; True if every one finished."""
        for worker in self.workers:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            worker.join(remaining)
        return not any(worker.is_alive() for worker in self.workers)
