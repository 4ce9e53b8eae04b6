"""
Shared metrics configuration for the authorization rule codec.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional
import threading


class CodecMetrics:
    """Prometheus metrics for rule encoding and decoding."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, enabled: bool = True):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.enabled = enabled
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up codec metrics."""
        self._metrics["rules_encoded_total"] = Counter(
            "rules_encoded_total",
            "Total top-level rules encoded",
            ["rule_type"],
            registry=self.registry
        )

        self._metrics["rules_decoded_total"] = Counter(
            "rules_decoded_total",
            "Total top-level rules decoded",
            ["rule_type"],
            registry=self.registry
        )

        self._metrics["decode_errors_total"] = Counter(
            "decode_errors_total",
            "Total decode failures",
            ["code"],
            registry=self.registry
        )

        self._metrics["encoded_rule_bytes"] = Histogram(
            "encoded_rule_bytes",
            "Size of encoded rules in bytes",
            buckets=(8, 16, 64, 128, 256, 512, 1024, 4096, 16384),
            registry=self.registry
        )

    def record_encode(self, rule_type: str, size: int):
        """Record a successful encode."""
        if not self.enabled:
            return
        self._metrics["rules_encoded_total"].labels(rule_type=rule_type).inc()
        self._metrics["encoded_rule_bytes"].observe(size)

    def record_decode(self, rule_type: str):
        """Record a successful decode."""
        if self.enabled:
            self._metrics["rules_decoded_total"].labels(rule_type=rule_type).inc()

    def record_decode_error(self, code: str):
        """Record a failed decode."""
        if self.enabled:
            self._metrics["decode_errors_total"].labels(code=code).inc()

    def get_metric(self, name: str) -> Any:
        """Get a metric by name."""
        return self._metrics.get(name)


_metrics: Optional[CodecMetrics] = None
_metrics_lock = threading.Lock()


def get_codec_metrics() -> CodecMetrics:
    """Get the process-wide codec metrics."""
    global _metrics
    with _metrics_lock:
        if _metrics is None:
            from .config import get_config
            _metrics = CodecMetrics(enabled=get_config().enable_metrics)
        return _metrics


def set_codec_metrics(metrics: Optional[CodecMetrics]) -> None:
    """Replace the process-wide codec metrics (None resets to default)."""
    global _metrics
    with _metrics_lock:
        _metrics = metrics
