"""Structured logging for extraction units and document generation."""

import logging
from typing import Any

from brandkit.orchestration.hooks import UnitContext

logger = logging.getLogger(__name__)

FAILURE_PHASES = frozenset({"error"})


class StructuredUnitLogger:
    """Structured logger for phase transitions."""

    def log_phase(
        self,
        ctx: UnitContext,
        phase: str,
        latency_ms: float | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log a phase transition with structured data."""
        log_data: dict[str, Any] = {
            "subject_id": str(ctx.subject_id),
            "kind": ctx.kind,
            "name": ctx.name,
            "phase": phase,
        }

        if latency_ms is not None:
            log_data["latency_ms"] = round(latency_ms, 2)
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"{ctx.kind.capitalize()} {ctx.name}: {phase}"

        if phase in FAILURE_PHASES:
            logger.warning(log_msg, extra={"structured": log_data})
        else:
            logger.info(log_msg, extra={"structured": log_data})
