"""Prometheus metrics for the quotedesk API.

Exposes:
- Request counts by endpoint and status
- Request duration histograms
- Extraction outcomes and latency by provider
- Validation severities by document type
- Conversation parse outcomes

Naming follows https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Extraction metrics
extraction_requests_total = Counter(
    "extraction_requests_total",
    "Total document extraction requests",
    ["status", "provider"],  # success, failed
)

extraction_duration_seconds = Histogram(
    "extraction_duration_seconds",
    "Document extraction duration in seconds",
    ["provider"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

document_upload_size_bytes = Histogram(
    "document_upload_size_bytes",
    "Uploaded document size in bytes",
    buckets=(1024, 10240, 102400, 1048576, 10485760),  # 1KB to 10MB
)

# Validation metrics
validation_results_total = Counter(
    "validation_results_total",
    "Validation results by severity",
    ["document_type", "severity"],  # none, warning, error
)

# Conversation metrics
conversation_parses_total = Counter(
    "conversation_parses_total",
    "Conversation parse attempts",
    ["outcome"],  # parsed, incomplete
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
