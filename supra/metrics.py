"""Prometheus metrics for the dish search service."""

from prometheus_client import Counter, Histogram

NAMESPACE = "supra"

# HTTP
REQUEST_COUNT = Counter(
    "http_requests_total", "HTTP requests served",
    ["method", "endpoint", "status"], namespace=NAMESPACE,
)
REQUEST_DURATION = Histogram(
    "http_request_duration_seconds", "HTTP request latency",
    ["method", "endpoint"], namespace=NAMESPACE,
)
APPLICATION_ERRORS = Counter(
    "application_errors_total", "5xx responses and unhandled exceptions",
    ["type", "endpoint"], namespace=NAMESPACE,
)

# Inference backend
INFERENCE_CALLS = Counter(
    "inference_calls_total", "Calls to the inference backend",
    ["model", "operation"], namespace=NAMESPACE,
)
INFERENCE_DURATION = Histogram(
    "inference_duration_seconds", "Inference call latency, including retries",
    ["model", "operation"], namespace=NAMESPACE,
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)
INFERENCE_TOKENS = Counter(
    "inference_tokens_total", "Tokens exchanged with the inference backend",
    ["model", "direction"], namespace=NAMESPACE,
)

# Search
SEARCHES = Counter(
    "searches_total", "Selection searches by outcome",
    ["search_type", "status"], namespace=NAMESPACE,
)
SEARCH_DURATION = Histogram(
    "search_duration_seconds", "End-to-end search latency",
    ["search_type"], namespace=NAMESPACE,
)
EMPTY_SELECTIONS = Counter(
    "empty_selections_total", "Successful searches that selected nothing",
    ["search_type"], namespace=NAMESPACE,
)
DROPPED_ENTRIES = Counter(
    "dropped_selection_entries_total",
    "Backend selection entries that did not resolve to a catalog dish",
    namespace=NAMESPACE,
)
IMAGE_INGESTIONS = Counter(
    "image_ingestions_total", "Image ingestion attempts by outcome",
    ["outcome"], namespace=NAMESPACE,
)


def record_llm_call(
    model: str,
    operation: str,
    duration: float,
    input_tokens: int = 0,
    output_tokens: int = 0,
) -> None:
    INFERENCE_CALLS.labels(model=model, operation=operation).inc()
    INFERENCE_DURATION.labels(model=model, operation=operation).observe(duration)
    if input_tokens:
        INFERENCE_TOKENS.labels(model=model, direction="input").inc(input_tokens)
    if output_tokens:
        INFERENCE_TOKENS.labels(model=model, direction="output").inc(output_tokens)


def record_search_request(search_type: str, status: str, duration: float, result_count: int) -> None:
    SEARCHES.labels(search_type=search_type, status=status).inc()
    SEARCH_DURATION.labels(search_type=search_type).observe(duration)
    if status == "success" and not result_count:
        EMPTY_SELECTIONS.labels(search_type=search_type).inc()


def record_dropped_entries(count: int) -> None:
    if count > 0:
        DROPPED_ENTRIES.inc(count)


def record_image_ingestion(outcome: str) -> None:
    """Outcome is one of ok, invalid_input, not_found, too_large, error."""
    IMAGE_INGESTIONS.labels(outcome=outcome).inc()
