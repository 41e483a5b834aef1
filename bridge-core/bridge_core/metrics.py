"""
Resilience Metrics
==================
Prometheus metrics for RPC provider calls, circuit breakers and retries.

All metrics live on a dedicated registry so that embedding applications can
expose them without colliding with their own default registry.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

RESILIENCE_REGISTRY = CollectorRegistry()

CIRCUIT_BREAKER_STATE = Gauge(
    name="rpc_circuit_breaker_state",
    documentation="Circuit breaker state (0=closed, 1=open)",
    labelnames=["provider"],
    registry=RESILIENCE_REGISTRY,
)

PROVIDER_REQUEST_TOTAL = Counter(
    name="rpc_provider_requests_total",
    documentation="Total number of RPC provider requests by outcome",
    labelnames=["provider", "outcome"],
    registry=RESILIENCE_REGISTRY,
)

PROVIDER_REQUEST_LATENCY = Histogram(
    name="rpc_provider_request_duration_seconds",
    documentation="Time spent on RPC provider requests",
    labelnames=["provider"],
    buckets=[
        0.01, 0.025, 0.05, 0.1, 0.25,
        0.5, 1.0, 2.5, 5.0, 10.0, 30.0,
    ],
    registry=RESILIENCE_REGISTRY,
)

RETRY_EVENTS = Counter(
    name="rpc_retry_events_total",
    documentation="Retry executor events (retried, exhausted, rejected, depth_abort)",
    labelnames=["search_depth_type", "event"],
    registry=RESILIENCE_REGISTRY,
)

_STATE_VALUES = {"closed": 0, "open": 1}


def record_circuit_state(provider: str, state: str) -> None:
    """Record a circuit breaker state change."""
    CIRCUIT_BREAKER_STATE.labels(provider=provider).set(_STATE_VALUES[state])


def record_provider_request(
    provider: str,
    success: bool,
    duration_ms: float,
    rate_limited: bool = False,
) -> None:
    """Record one provider call outcome."""
    if success:
        outcome = "success"
    elif rate_limited:
        outcome = "rate_limited"
    else:
        outcome = "error"
    PROVIDER_REQUEST_TOTAL.labels(provider=provider, outcome=outcome).inc()
    PROVIDER_REQUEST_LATENCY.labels(provider=provider).observe(max(duration_ms, 0.0) / 1000.0)


def record_retry_event(search_depth_type: str, event: str) -> None:
    RETRY_EVENTS.labels(search_depth_type=search_depth_type, event=event).inc()


def get_metrics_text() -> bytes:
    """Render all resilience metrics in the Prometheus exposition format."""
    return generate_latest(RESILIENCE_REGISTRY)
