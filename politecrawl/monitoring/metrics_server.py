from prometheus_client import Counter, Gauge, Histogram, start_http_server

# -------------------------
# Worker-Level Metrics
# -------------------------

WORKER_PROCESSED = Counter(
    "politecrawl_worker_processed_total",
    "URLs taken from the frontier and handled, whatever the outcome",
    ["worker_id"],
)

WORKER_FAILED = Counter(
    "politecrawl_worker_failed_total",
    "Unexpected errors while processing a URL",
    ["worker_id"],
)

WORKER_ACTIVE = Gauge(
    "politecrawl_worker_active",
    "Worker active state",
    ["worker_id"],
)

# -------------------------
# Request Metrics
# -------------------------

REQUEST_COUNT = Counter(
    "politecrawl_requests_total",
    "Total page requests",
    ["worker"],
)

FAILED_REQUESTS = Counter(
    "politecrawl_failed_requests_total",
    "Page requests that did not yield a usable body",
    ["worker", "reason"],
)

CRAWLED_PAGES = Counter(
    "politecrawl_crawled_pages_total",
    "Successfully crawled pages",
    ["worker"],
)

ROBOTS_SKIPPED = Counter(
    "politecrawl_robots_skipped_total",
    "URLs skipped because robots.txt disallows them",
    ["worker"],
)

REQUEST_LATENCY = Histogram(
    "politecrawl_request_latency_seconds",
    "Time to fetch a page",
    ["worker"],
)

# -------------------------
# Frontier Metrics
# -------------------------

QUEUE_PENDING = Gauge(
    "politecrawl_queue_pending",
    "Number of URLs waiting in the frontier",
)

DISCOVERED_URLS = Gauge(
    "politecrawl_discovered_urls",
    "Distinct URLs discovered so far",
)


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0"):
    """Serve /metrics from a background thread."""
    return start_http_server(port, addr=addr)
