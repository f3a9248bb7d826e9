"""Map domain errors onto HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from brandkit.errors import (
    DocumentImmutableError,
    DocumentNotFoundError,
    MissingContentError,
    NotReadyError,
    SubjectNotFoundError,
    TemplateUnavailableError,
    TransportError,
    UpstreamCallError,
    ValidationFailure,
)


def status_for(exc: Exception) -> int:
    """HTTP status code for a domain error."""
    if isinstance(exc, (SubjectNotFoundError, DocumentNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, NotReadyError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, (DocumentImmutableError, TemplateUnavailableError, MissingContentError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationFailure):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_502_BAD_GATEWAY


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    body: dict[str, object] = {"detail": str(exc)}
    if isinstance(exc, NotReadyError):
        body["readiness"] = exc.readiness.model_dump(mode="json")
    return JSONResponse(status_code=status_for(exc), content=body)


def register_error_handlers(app: FastAPI) -> None:
    for exc_class in (ValidationFailure, UpstreamCallError, TransportError):
        app.add_exception_handler(exc_class, domain_error_handler)
