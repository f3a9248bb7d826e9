"""Error taxonomy for extraction, document generation and live sync."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brandkit.models.readiness import ReadinessResult


class ValidationFailure(ValueError):
    """Caller supplied an unknown id or an invalid request."""

    pass


class UnknownExtractorError(ValidationFailure):
    """Extractor id is not registered."""

    def __init__(self, extractor_id: str) -> None:
        super().__init__(f"Unknown extractor: {extractor_id}")
        self.extractor_id = extractor_id


class UnknownTemplateError(ValidationFailure):
    """Template id is not registered."""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Unknown template: {template_id}")
        self.template_id = template_id


class TemplateUnavailableError(ValidationFailure):
    """Template is listed in the catalog but cannot be generated yet."""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Template is not available yet: {template_id}")
        self.template_id = template_id


class SubjectNotFoundError(ValidationFailure):
    """Subject does not exist."""

    pass


class UnitNotFoundError(ValidationFailure):
    """No extraction unit row exists for the subject and extractor."""

    def __init__(self, subject_id: object, extractor_id: str) -> None:
        super().__init__(f"No {extractor_id} unit for subject {subject_id}")
        self.extractor_id = extractor_id


class DocumentNotFoundError(ValidationFailure):
    """Generated document does not exist."""

    pass


class MissingContentError(ValidationFailure):
    """Subject has no content snapshot to analyze."""

    pass


class NotReadyError(ValidationFailure):
    """Template prerequisites are not satisfied."""

    def __init__(self, readiness: "ReadinessResult") -> None:
        missing = ", ".join(e.value for e in readiness.missing_extractors) or "none"
        super().__init__(f"Missing required analysis: {missing}")
        self.readiness = readiness


class DocumentImmutableError(ValidationFailure):
    """Completed documents only accept export metadata updates."""

    pass


class UpstreamCallError(Exception):
    """Language model call failed, returned nothing, or returned an unusable record."""

    pass


class TransportError(Exception):
    """Live update transport failed to subscribe or dropped the connection."""

    pass
