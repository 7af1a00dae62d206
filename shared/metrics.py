"""
Prometheus metrics for the NASA Mission Control access layer.
"""

from typing import Any, Dict, Optional, Tuple

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest


# name -> (type, help text, label names)
METRIC_DEFINITIONS: Dict[str, Tuple[type, str, Tuple[str, ...]]] = {
    "http_requests_total": (Counter, "Inbound HTTP requests", ("method", "endpoint", "status_code")),
    "http_request_duration_seconds": (Histogram, "Inbound HTTP request duration in seconds", ("method", "endpoint")),
    "errors_total": (Counter, "Errors by code", ("error_type", "service")),
    "rate_limit_hits_total": (Counter, "Inbound requests rejected by the rate limiter", ("endpoint",)),
    "cache_events_total": (Counter, "Cache lookups by outcome", ("cache", "result")),
    "upstream_requests_total": (Counter, "Outbound NASA API requests by outcome", ("resource", "outcome")),
    "upstream_request_duration_seconds": (
        Histogram,
        "Outbound NASA API request duration in seconds",
        ("resource",),
    ),
}


class MetricsCollector:
    """Owns one registry and the gateway's metric families."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None, version: str = "1.0.0"):
        self.service_name = service_name
        # Private registry per collector so several apps can live in one process
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {
            name: metric_type(name, help_text, labels, registry=self.registry)
            for name, (metric_type, help_text, labels) in METRIC_DEFINITIONS.items()
        }

        service_info = Info("service", "Service information", registry=self.registry)
        service_info.info({"service": service_name, "version": version})
        self._metrics["service_info"] = service_info

    def get_metric(self, name: str):
        return self._metrics.get(name)

    def render(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self._metrics["http_requests_total"].labels(
            method=method, endpoint=endpoint, status_code=str(status_code)
        ).inc()
        self._metrics["http_request_duration_seconds"].labels(method=method, endpoint=endpoint).observe(duration)

    def record_error(self, error_type: str, service: Optional[str] = None):
        self._metrics["errors_total"].labels(error_type=error_type, service=service or self.service_name).inc()

    def record_cache_event(self, cache: str, hit: bool):
        self._metrics["cache_events_total"].labels(cache=cache, result="hit" if hit else "miss").inc()

    def record_upstream_request(self, resource: str, outcome: str, duration: float):
        """Count an outbound NASA call and observe its latency."""
        self._metrics["upstream_requests_total"].labels(resource=resource, outcome=outcome).inc()
        self._metrics["upstream_request_duration_seconds"].labels(resource=resource).observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a known counter; unknown names are ignored."""
        metric = self._metrics.get(metric_name)
        if isinstance(metric, Counter):
            metric.labels(**labels).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    return MetricsCollector(service_name, registry)
