"""Service wiring for the HTTP layer."""

import logging
from dataclasses import dataclass
from functools import lru_cache

from brandkit.config import Settings, get_settings
from brandkit.db.engine import create_async_engine_from_settings, create_session_factory
from brandkit.db.inmemory import (
    InMemoryDocumentRepository,
    InMemorySubjectRepository,
    InMemoryUnitRepository,
)
from brandkit.db.repositories import DocumentRepository, SubjectRepository, UnitRepository
from brandkit.db.sql_repositories import (
    SqlDocumentRepository,
    SqlSubjectRepository,
    SqlUnitRepository,
)
from brandkit.documents.generator import DocumentGenerator
from brandkit.documents.service import DocumentService
from brandkit.llm.client import LLMClient, get_llm_client
from brandkit.orchestration.analysis import AnalysisService
from brandkit.orchestration.protocol import PhaseBudget
from brandkit.orchestration.runner import ExtractionRunner
from brandkit.sync.feed import ChangeFeed, InMemoryChangeFeed
from brandkit.sync.channel import SyncConfig
from brandkit.utils.logging import StructuredUnitLogger
from brandkit.utils.metrics import PrometheusUnitMetrics

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs."""

    settings: Settings
    subjects: SubjectRepository
    units: UnitRepository
    documents: DocumentRepository
    feed: ChangeFeed | None
    analysis: AnalysisService
    document_service: DocumentService
    sync_config: SyncConfig


def build_services(settings: Settings, llm: LLMClient | None = None) -> Services:
    """Wire repositories, runner, generator and services from settings.

    Without DATABASE_URL everything lives in memory and unit changes are
    pushed through an in-process change feed. With a database there is no
    feed and live sync falls back to polling.
    """
    llm = llm or get_llm_client(settings)
    subjects: SubjectRepository
    units: UnitRepository
    documents: DocumentRepository
    feed: InMemoryChangeFeed | None

    if settings.database_url:
        session_factory = create_session_factory(create_async_engine_from_settings(settings))
        subjects = SqlSubjectRepository(session_factory)
        units = SqlUnitRepository(session_factory)
        documents = SqlDocumentRepository(session_factory)
        feed = None
        logger.info("Using SQL repositories")
    else:
        feed = InMemoryChangeFeed()
        memory_units = InMemoryUnitRepository(feed)
        memory_documents = InMemoryDocumentRepository()
        subjects = InMemorySubjectRepository(memory_units, memory_documents)
        units = memory_units
        documents = memory_documents
        logger.warning("DATABASE_URL not set, using in-memory repositories")

    metrics = PrometheusUnitMetrics()
    unit_logger = StructuredUnitLogger()

    runner = ExtractionRunner(
        units,
        llm,
        budget=PhaseBudget.for_extraction(settings),
        metrics=metrics,
        unit_logger=unit_logger,
    )
    generator = DocumentGenerator(
        llm,
        budget=PhaseBudget.for_documents(settings),
        metrics=metrics,
        unit_logger=unit_logger,
    )

    return Services(
        settings=settings,
        subjects=subjects,
        units=units,
        documents=documents,
        feed=feed,
        analysis=AnalysisService(subjects, units, runner),
        document_service=DocumentService(
            subjects,
            units,
            documents,
            generator,
            default_subject_name=settings.default_subject_name,
        ),
        sync_config=SyncConfig.from_settings(settings),
    )


@lru_cache
def get_services() -> Services:
    """Process-wide services (overridable through app.dependency_overrides)."""
    return build_services(get_settings())
