"""Subject endpoints - registration, background analysis, unit retries and SSE unit sync."""

import asyncio
import logging
import uuid
from collections.abc import AsyncGenerator, Coroutine
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from brandkit.api.deps import Services, get_services
from brandkit.errors import SubjectNotFoundError
from brandkit.models.subject import Subject, SubjectUpdate
from brandkit.models.units import ExtractionUnit
from brandkit.orchestration.status import AnalysisStatus, AnalysisSummary, summarize_units
from brandkit.sync.channel import LiveSyncChannel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects", tags=["subjects"])

HEARTBEAT_INTERVAL_SEC = 15.0
FINISHED_STATUSES = frozenset({AnalysisStatus.complete, AnalysisStatus.error, AnalysisStatus.partial})

_background_tasks: set[asyncio.Task[Any]] = set()


class CreateSubjectRequest(BaseModel):
    """Request body for POST /subjects."""

    owner_id: uuid.UUID
    source_url: str = Field(..., min_length=1, description="Website the content was taken from")
    content: str | None = Field(None, description="Cleaned text snapshot of the website")
    name: str | None = Field(None, description="Display name (derived from analysis when unset)")


class AnalysisAcceptedResponse(BaseModel):
    """Response for endpoints that start a background analysis."""

    subject_id: str
    status: str
    units: list[ExtractionUnit]


class RetryResponse(BaseModel):
    """Response for POST /subjects/{subject_id}/units/{unit_type}/retry."""

    success: bool
    duration_ms: float
    error: str | None
    unit: ExtractionUnit | None


class UnitsSnapshot(BaseModel):
    """One SSE payload: every unit of a subject plus the rolled-up status."""

    summary: AnalysisSummary
    units: list[ExtractionUnit]


def _spawn(coro: Coroutine[Any, Any, None]) -> None:
    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def _run_analysis_background(services: Services, subject_id: uuid.UUID) -> None:
    """Run every extractor for a subject in the background."""
    try:
        results = await services.analysis.run_queued(subject_id)
    except Exception:
        logger.exception(f"Background analysis for subject {subject_id} failed")
        return
    failed = [eid.value for eid, result in results.items() if not result.success]
    logger.info(
        f"Background analysis for subject {subject_id} finished "
        f"({len(results) - len(failed)} ok, failed={failed})"
    )


@router.post("", response_model=AnalysisAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_subject(
    request: CreateSubjectRequest,
    services: Annotated[Services, Depends(get_services)],
) -> AnalysisAcceptedResponse:
    """Register a subject and, when content is present, start analyzing it.

    Args:
        request: Subject registration request
        services: Wired services

    Returns:
        Subject ID, "accepted" or "registered", and the queued units
    """
    subject, units = await services.analysis.register_subject(
        request.owner_id, request.source_url, request.content, name=request.name
    )
    if subject.content and subject.content.strip():
        _spawn(_run_analysis_background(services, subject.subject_id))
        state = "accepted"
    else:
        state = "registered"
    return AnalysisAcceptedResponse(subject_id=str(subject.subject_id), status=state, units=units)


@router.get("", response_model=list[Subject])
async def list_subjects(
    owner_id: Annotated[uuid.UUID, Query()],
    services: Annotated[Services, Depends(get_services)],
) -> list[Subject]:
    return await services.subjects.list_subjects(owner_id)


@router.get("/{subject_id}", response_model=Subject)
async def get_subject(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> Subject:
    subject = await services.subjects.get_subject(subject_id)
    if subject is None:
        raise SubjectNotFoundError(f"Subject not found: {subject_id}")
    return subject


@router.patch("/{subject_id}", response_model=Subject)
async def update_subject(
    subject_id: uuid.UUID,
    update: SubjectUpdate,
    services: Annotated[Services, Depends(get_services)],
) -> Subject:
    """Apply a partial update; a content change marks existing documents stale."""
    subject = await services.subjects.update_subject(subject_id, update)
    if subject is None:
        raise SubjectNotFoundError(f"Subject not found: {subject_id}")
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> Response:
    if not await services.subjects.delete_subject(subject_id):
        raise SubjectNotFoundError(f"Subject not found: {subject_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{subject_id}/analyze",
    response_model=AnalysisAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def analyze_subject(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> AnalysisAcceptedResponse:
    """Queue every unit again and rerun the full analysis in the background."""
    units = await services.analysis.queue_analysis(subject_id)
    _spawn(_run_analysis_background(services, subject_id))
    return AnalysisAcceptedResponse(subject_id=str(subject_id), status="accepted", units=units)


@router.get("/{subject_id}/units", response_model=list[ExtractionUnit])
async def list_units(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> list[ExtractionUnit]:
    return await services.analysis.list_units(subject_id)


@router.get("/{subject_id}/status", response_model=AnalysisSummary)
async def get_status(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> AnalysisSummary:
    return await services.analysis.get_status(subject_id)


@router.post("/{subject_id}/units/{unit_type}/retry", response_model=RetryResponse)
async def retry_unit(
    subject_id: uuid.UUID,
    unit_type: str,
    services: Annotated[Services, Depends(get_services)],
) -> RetryResponse:
    """Rerun one extractor with the outputs of the subject's other complete units."""
    result = await services.analysis.rerun_unit(subject_id, unit_type)
    units = await services.analysis.list_units(subject_id)
    unit = next((u for u in units if u.unit_type.value == unit_type), None)
    return RetryResponse(
        success=result.success, duration_ms=result.duration_ms, error=result.error, unit=unit
    )


@router.get("/{subject_id}/units/stream")
async def stream_units(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> StreamingResponse:
    """Stream unit snapshots via SSE until the analysis finishes.

    Each ``units`` event carries every unit of the subject. A ``done`` event
    follows the first snapshot whose rolled-up status is complete, error or
    partial.
    """
    await services.analysis.list_units(subject_id)

    queue: asyncio.Queue[list[ExtractionUnit]] = asyncio.Queue()

    async def fetch_all() -> list[ExtractionUnit]:
        return await services.units.list_units(subject_id)

    channel = LiveSyncChannel(
        subject_id,
        fetch_all,
        queue.put_nowait,
        feed=services.feed,
        config=services.sync_config,
    )

    async def event_generator() -> AsyncGenerator[str, None]:
        """Generate SSE events."""
        channel.start()
        try:
            await channel.refresh()
            while True:
                try:
                    units = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_INTERVAL_SEC)
                except asyncio.TimeoutError:
                    yield "event: heartbeat\n"
                    yield f'data: {{"ts": "{datetime.now(timezone.utc).isoformat()}"}}\n\n'
                    continue

                snapshot = UnitsSnapshot(summary=summarize_units(units), units=units)
                yield "event: units\n"
                yield f"data: {snapshot.model_dump_json()}\n\n"

                if snapshot.summary.status in FINISHED_STATUSES:
                    yield "event: done\n"
                    yield f'data: {{"status": "{snapshot.summary.status.value}"}}\n\n'
                    break
        finally:
            channel.stop()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
