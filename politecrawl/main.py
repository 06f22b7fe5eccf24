import argparse
import signal
import sys
from typing import Optional, Sequence

from loguru import logger

from politecrawl.coordinator import Crawler
from politecrawl.monitoring.metrics_server import start_metrics_server
from politecrawl.monitoring.progress import ProgressReporter
from politecrawl.utils.config_loader import load_config
from politecrawl.utils.logger import setup_logger


def parse_max_pages(raw: Optional[str]) -> Optional[int]:
    """Positive page budget from the command line, or None to keep the default."""
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid max_pages parameter '{raw}', using the configured default")
        return None
    if value <= 0:
        logger.warning(f"max_pages must be positive, got {value}; using the configured default")
        return None
    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="politecrawl",
        description="Polite multi-threaded web crawler: robots.txt aware, per-domain rate limited.",
    )
    p.add_argument("start_url", help="URL to start crawling from.")
    p.add_argument("max_pages", nargs="?", help="Stop after this many pages (default from config).")
    p.add_argument("--workers", type=int, help="Number of worker threads.")
    p.add_argument("--delay", type=float, help="Minimum seconds between requests to one domain.")
    p.add_argument("--max-runtime", type=float, help="Hard ceiling on the whole crawl, in seconds.")
    p.add_argument("--user-agent", help="User-Agent header and robots.txt agent name.")
    p.add_argument("--config", help="Path to a YAML config file.")
    p.add_argument("--log-level", help="Log level for stderr and the log file.")
    p.add_argument("--log-path", help="Also write logs to this file.")
    p.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port.")
    p.add_argument("--no-robots", action="store_true", help="Skip robots.txt checks (not recommended).")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    config = load_config(
        args.config,
        max_pages=parse_max_pages(args.max_pages),
        crawler_workers=args.workers,
        crawl_delay_default=args.delay,
        max_runtime_seconds=args.max_runtime,
        crawler_user_agent=args.user_agent,
        log_level=args.log_level,
        log_path=args.log_path,
        metrics_port=args.metrics_port,
    )
    setup_logger(config.log_level, config.log_path)

    if config.metrics_port:
        start_metrics_server(config.metrics_port)
        logger.info(f"Metrics available on :{config.metrics_port}/metrics")

    reporter = ProgressReporter(stream=sys.stdout)
    crawler = Crawler(config, reporter=reporter, respect_robots=not args.no_robots)

    def _handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating shutdown...")
        crawler.stop()

    signal.signal(signal.SIGTERM, _handle_signal)

    summary = crawler.run(args.start_url)
    reporter.summary(summary)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
