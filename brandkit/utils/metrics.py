"""Prometheus metrics for extraction units and document generation."""

from prometheus_client import Counter, Histogram

from brandkit.orchestration.hooks import UnitContext

unit_latency_ms = Histogram(
    "unit_latency_ms",
    "Extraction or document generation latency in milliseconds",
    ["kind", "name", "outcome"],
    buckets=[500, 1000, 2500, 5000, 10000, 20000, 40000, 80000],
)

unit_errors_total = Counter(
    "unit_errors_total",
    "Total extraction or document generation failures",
    ["kind", "name", "phase"],
)


class PrometheusUnitMetrics:
    """Prometheus-based unit metrics implementation."""

    def record_latency(self, ctx: UnitContext, outcome: str, latency_ms: float) -> None:
        """Record execution latency."""
        unit_latency_ms.labels(kind=ctx.kind, name=ctx.name, outcome=outcome).observe(latency_ms)

    def inc_error(self, ctx: UnitContext, phase: str) -> None:
        """Increment error counter."""
        unit_errors_total.labels(kind=ctx.kind, name=ctx.name, phase=phase).inc()
