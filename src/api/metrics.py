import logging

from prometheus_client import Counter, Histogram, Gauge, REGISTRY

logger = logging.getLogger(__name__)


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        # Try to create it
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # If it already exists, retrieve it from the registry
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "duelist_requests_total",
    "Total API requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "duelist_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

TASKS_EXTRACTED_TOTAL = get_or_create_metric(
    "duelist_tasks_extracted_total", "Task drafts returned by the model", Counter
)

TASKS_INSERTED_TOTAL = get_or_create_metric(
    "duelist_tasks_inserted_total", "Tasks stored from uploads", Counter
)

DUPLICATES_SKIPPED_TOTAL = get_or_create_metric(
    "duelist_duplicates_skipped_total", "Drafts dropped as duplicates", Counter
)

TASKS_STORED = get_or_create_metric(
    "duelist_tasks_stored", "Tasks currently in the store", Gauge
)


def observe_request(endpoint: str, status: str, started_at: float, now: float) -> None:
    """Best-effort request accounting; metrics never break a request."""
    try:
        REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(now - started_at)
    except Exception as e:
        logger.warning(f"Could not record request metrics for {endpoint}: {e}")
