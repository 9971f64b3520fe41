# metrics.py
"""Prometheus metrics used by the labyrinth service."""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# 0. Global Registry
REGISTRY = CollectorRegistry()

# 1. HTTP
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests.",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "endpoint"],
    registry=REGISTRY,
)

# 2. Labyrinth
LABYRINTH_PAGES_GENERATED = Counter(
    "labyrinth_pages_generated_total",
    "Labyrinth pages generated successfully.",
    registry=REGISTRY,
)
LABYRINTH_FRAGMENTS_GENERATED = Counter(
    "labyrinth_fragments_generated_total",
    "Hyperlinked corpus fragments emitted across all pages.",
    registry=REGISTRY,
)
LABYRINTH_GENERATION_FAILURES = Counter(
    "labyrinth_generation_failures_total",
    "Labyrinth page generation failures.",
    ["kind"],
    registry=REGISTRY,
)
LABYRINTH_BUDGET_EXHAUSTED = Counter(
    "labyrinth_budget_exhausted_total",
    "Pages served short because the iteration budget ran out.",
    registry=REGISTRY,
)
LABYRINTH_HITS = Counter(
    "labyrinth_hits_total",
    "Requests served from inside the labyrinth.",
    registry=REGISTRY,
)


def record_request(method, endpoint, status_code):
    REQUEST_COUNT.labels(
        method=method, endpoint=endpoint, status_code=str(status_code)
    ).inc()


def get_metrics():
    return generate_latest(REGISTRY)
