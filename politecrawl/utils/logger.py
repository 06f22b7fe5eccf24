import os
import sys

from loguru import logger

_logger_initialized = False
_sink_ids: list[int] = []

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | worker={extra[worker_id]} | {message}"


def setup_logger(log_level: str = "INFO", log_path: str | None = None, worker_id: str | None = None):
    """Configure loguru sinks once per process and return a bound logger.

    stdout carries the crawl progress lines, so the console sink writes to
    stderr. A rotating file sink is added only when ``log_path`` is given.
    """
    global _logger_initialized, _sink_ids

    resolved_worker_id = worker_id or os.getenv("WORKER_ID") or "main"

    if not _logger_initialized:
        logger.remove()
        logger.configure(extra={"worker_id": resolved_worker_id})

        console_sink = logger.add(
            sys.stderr,
            colorize=True,
            level=log_level.upper(),
            format=LOG_FORMAT,
        )
        _sink_ids = [console_sink]

        if log_path:
            parent = os.path.dirname(os.path.abspath(log_path))
            os.makedirs(parent, exist_ok=True)
            file_sink = logger.add(
                log_path,
                rotation="10 MB",
                retention="7 days",
                level=log_level.upper(),
                format=LOG_FORMAT,
                enqueue=True,
            )
            _sink_ids.append(file_sink)

        _logger_initialized = True

    return logger.bind(worker_id=resolved_worker_id)


def reset_logger() -> None:
    """Drop the sinks installed by :func:`setup_logger`."""
    global _logger_initialized, _sink_ids

    for sink_id in _sink_ids:
        logger.remove(sink_id)
    _sink_ids = []
    _logger_initialized = False
