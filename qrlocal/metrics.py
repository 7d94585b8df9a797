"""Prometheus metrics for redirect creation, resolution and allocation."""

from prometheus_client import Counter, Histogram

__all__ = [
    "CREATION_REQUESTS_TOTAL",
    "CREATION_DURATION",
    "REDIRECT_REQUESTS_TOTAL",
    "ALLOCATION_COLLISIONS_TOTAL",
    "VISIT_RECORD_FAILURES_TOTAL",
    "CACHE_LOOKUPS_TOTAL",
]

CREATION_REQUESTS_TOTAL = Counter(
    "qrlocal_creation_requests_total",
    "Total redirect creation requests",
    ["status"],
)
CREATION_DURATION = Histogram(
    "qrlocal_creation_duration_seconds",
    "Time taken to create redirects",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
REDIRECT_REQUESTS_TOTAL = Counter(
    "qrlocal_redirect_requests_total",
    "Total redirect resolutions",
    ["status"],
)
ALLOCATION_COLLISIONS_TOTAL = Counter(
    "qrlocal_allocation_collisions_total",
    "Generated identifiers discarded because they were already taken",
)
VISIT_RECORD_FAILURES_TOTAL = Counter(
    "qrlocal_visit_record_failures_total",
    "Visit counter updates that failed after a redirect was served",
)
CACHE_LOOKUPS_TOTAL = Counter(
    "qrlocal_cache_lookups_total",
    "Redirect cache lookups",
    ["result"],
)
