"""Aggregate analysis status of a subject."""

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel

from brandkit.models.common import UnitStatus
from brandkit.models.units import ExtractionUnit


class AnalysisStatus(str, Enum):
    """Overall status across a subject's units."""

    queued = "queued"
    analyzing = "analyzing"
    complete = "complete"
    error = "error"
    partial = "partial"


class AnalysisSummary(BaseModel):
    status: AnalysisStatus
    total_units: int
    completed_units: int
    error_units: int


IN_PROGRESS = frozenset({UnitStatus.analyzing, UnitStatus.parsing})


def summarize_units(units: Iterable[ExtractionUnit]) -> AnalysisSummary:
    """Roll unit statuses up into one subject-level status.

    All complete -> complete; all failed -> error; anything in flight ->
    analyzing; a finished mix of successes and failures -> partial;
    otherwise queued (including no units at all).
    """
    statuses = [u.status for u in units]
    total = len(statuses)
    completed = statuses.count(UnitStatus.complete)
    errors = statuses.count(UnitStatus.error)

    if total == 0:
        status = AnalysisStatus.queued
    elif completed == total:
        status = AnalysisStatus.complete
    elif errors == total:
        status = AnalysisStatus.error
    elif any(s in IN_PROGRESS for s in statuses):
        status = AnalysisStatus.analyzing
    elif completed and errors:
        status = AnalysisStatus.partial
    else:
        status = AnalysisStatus.queued

    return AnalysisSummary(
        status=status, total_units=total, completed_units=completed, error_units=errors
    )
