from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from scroll.types import PatternWarning

HTTP_REQUESTS_TOTAL = Counter(
    "scroll_api_http_requests_total",
    "Total HTTP requests served by the API.",
    ["method", "path", "status_code"],
)
HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "scroll_api_http_request_duration_seconds",
    "HTTP request latency for the API.",
    ["method", "path", "status_code"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
DOCUMENTS_PARSED_TOTAL = Counter(
    "scroll_documents_parsed_total",
    "Documents run through the structural parser.",
    ["source_type", "mode"],
)
CITATION_MATCHES_TOTAL = Counter(
    "scroll_citation_matches_total",
    "Citation alias matches accepted during text scans.",
)
ALIAS_PATTERN_FAILURES_TOTAL = Counter(
    "scroll_alias_pattern_failures_total",
    "Alias patterns skipped during a scan.",
    ["reason"],
)


def observe_http_request(method: str, path: str, status_code: int, duration_seconds: float) -> None:
    status = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status_code=status).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=path, status_code=status).observe(
        duration_seconds
    )


def observe_document_parsed(source_type: str, mode: str) -> None:
    DOCUMENTS_PARSED_TOTAL.labels(source_type=source_type, mode=mode).inc()


def observe_citation_scan(match_count: int, warnings: list[PatternWarning]) -> None:
    CITATION_MATCHES_TOTAL.inc(match_count)
    for warning in warnings:
        ALIAS_PATTERN_FAILURES_TOTAL.labels(reason=warning.reason).inc()


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
