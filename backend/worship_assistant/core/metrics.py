"""
Prometheus metrics collection module.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration of the HTTP surface
- Classification Metrics: query types produced by the rule-based classifier
- Agent Metrics: responder invocations and their outcome
- LLM Metrics: inference requests, latency, errors, token usage
- Batch Metrics: chunked analysis runs and per-chunk outcomes

All metrics follow Prometheus naming conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for duration
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

from worship_assistant.core.logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# RED METRICS - Rate, Errors, Duration
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_errors_total = Counter(
    "http_errors_total",
    "Total number of HTTP errors",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
    registry=registry,
)

# ============================================================================
# CLASSIFICATION & AGENT METRICS
# ============================================================================

query_classifications_total = Counter(
    "query_classifications_total",
    "Total number of classified queries by resulting type",
    ["query_type"],
    registry=registry,
)

agent_invocations_total = Counter(
    "agent_invocations_total",
    "Total number of specialized responder invocations",
    ["agent", "outcome"],  # outcome: success | failure | error | unavailable
    registry=registry,
)

fallback_responses_total = Counter(
    "fallback_responses_total",
    "Total number of deterministic local fallback responses",
    ["reason"],
    registry=registry,
)

# ============================================================================
# LLM METRICS
# ============================================================================

llm_requests_total = Counter(
    "llm_requests_total",
    "Total number of inference service requests",
    ["agent", "model"],
    registry=registry,
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "Inference service request latency in seconds",
    ["agent", "model"],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 45.0, 60.0],
    registry=registry,
)

llm_errors_total = Counter(
    "llm_errors_total",
    "Total number of inference service errors",
    ["agent", "error_type"],
    registry=registry,
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total number of tokens reported by the inference service",
    ["agent", "model", "kind"],  # kind: prompt | completion
    registry=registry,
)

# ============================================================================
# BATCH METRICS
# ============================================================================

batch_runs_total = Counter(
    "batch_runs_total",
    "Total number of chunked analysis runs",
    ["trigger"],  # trigger: size | timeout
    registry=registry,
)

batch_chunks_total = Counter(
    "batch_chunks_total",
    "Total number of processed batch chunks by outcome",
    ["outcome"],  # outcome: succeeded | empty | failed
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path for metrics (drops query string).

    Examples:
        /chat?debug=1 -> /chat
        /health -> /health
    """
    if "?" in path:
        path = path.split("?")[0]
    return path.rstrip("/") or "/"


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """
    Record HTTP request metrics (RED metrics).

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Request path
        status_code: HTTP status code
        duration_seconds: Request duration in seconds
    """
    normalized_endpoint = normalize_endpoint(endpoint)

    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()

    if status_code >= 400:
        http_errors_total.labels(
            method=method,
            endpoint=normalized_endpoint,
            status_code=str(status_code),
        ).inc()

    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def record_query_classification(query_type: str) -> None:
    query_classifications_total.labels(query_type=query_type).inc()


def record_agent_invocation(agent: str, outcome: str) -> None:
    agent_invocations_total.labels(agent=agent, outcome=outcome).inc()


def record_fallback_response(reason: str) -> None:
    fallback_responses_total.labels(reason=reason).inc()


def record_llm_request(agent: str, model: str, duration_ms: float) -> None:
    """Record one inference request and its latency (also for failed requests)."""
    llm_requests_total.labels(agent=agent, model=model).inc()
    llm_request_duration_seconds.labels(agent=agent, model=model).observe(
        duration_ms / 1000.0
    )


def record_llm_error(agent: str, error_type: str) -> None:
    llm_errors_total.labels(agent=agent, error_type=error_type).inc()


def record_llm_tokens(
    agent: str,
    model: str,
    input_tokens: int,
    output_tokens: int,
) -> None:
    """Record token usage reported by the inference service."""
    if input_tokens > 0:
        llm_tokens_total.labels(agent=agent, model=model, kind="prompt").inc(input_tokens)
    if output_tokens > 0:
        llm_tokens_total.labels(agent=agent, model=model, kind="completion").inc(
            output_tokens
        )


def record_batch_run(trigger: str) -> None:
    batch_runs_total.labels(trigger=trigger).inc()


def record_batch_chunk(outcome: str) -> None:
    batch_chunks_total.labels(outcome=outcome).inc()


def get_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format.

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
