"""Instrumentation interfaces for unit and document execution (no-op defaults)."""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class UnitContext:
    """Identifies one execution for logs and metrics."""

    subject_id: uuid.UUID
    kind: str  # "extractor" or "document"
    name: str


class UnitMetrics:
    """Interface for execution metrics."""

    def record_latency(self, ctx: UnitContext, outcome: str, latency_ms: float) -> None:
        """Record execution latency."""
        pass

    def inc_error(self, ctx: UnitContext, phase: str) -> None:
        """Increment error counter."""
        pass


class UnitLogger:
    """Interface for structured logging."""

    def log_phase(
        self,
        ctx: UnitContext,
        phase: str,
        latency_ms: float | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log a phase transition."""
        pass
