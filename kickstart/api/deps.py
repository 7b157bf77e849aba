# kickstart/api/deps.py
# Fournisseurs FastAPI des services (surchargés via `app.dependency_overrides` dans les tests).

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from kickstart.core.settings import Settings, get_settings
from kickstart.core.utils import Clock, utcnow
from kickstart.db.mongodb import get_collection
from kickstart.services.content_analysis import ContentAnalyzer, PlaceholderContentAnalyzer
from kickstart.services.progress.progress_engine import NextDayPolicy, ProgressEngine
from kickstart.services.storage.blob_store import BlobStore, build_blob_store
from kickstart.services.storage.session_log_store import MongoSessionLogStore, SessionLogStore
from kickstart.services.storage.task_store import MongoTaskStore, TaskStore
from kickstart.services.study_session.session_registry import SessionRegistry
from kickstart.services.study_session.study_session_service import StudySessionService
from kickstart.services.task_ingestion.artifact_uploader import ArtifactUploader
from kickstart.services.task_ingestion.task_ingestion_service import TaskIngestionService
from kickstart.shared.constants import SESSION_LOGS_COLLECTION, TASKS_COLLECTION


def get_clock() -> Clock:
    return utcnow


def get_task_store() -> TaskStore:
    return MongoTaskStore(get_collection(TASKS_COLLECTION))


def get_session_log_store() -> SessionLogStore:
    return MongoSessionLogStore(get_collection(SESSION_LOGS_COLLECTION))


@lru_cache
def get_blob_store() -> BlobStore:
    return build_blob_store(get_settings())


@lru_cache
def get_session_registry() -> SessionRegistry:
    """Registre unique : les sessions en cours vivent en mémoire du processus."""
    return SessionRegistry()


def get_content_analyzer() -> ContentAnalyzer:
    return PlaceholderContentAnalyzer()


def get_progress_engine(
    task_store: Annotated[TaskStore, Depends(get_task_store)],
    session_logs: Annotated[SessionLogStore, Depends(get_session_log_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ProgressEngine:
    return ProgressEngine(task_store, session_logs, NextDayPolicy(settings.study_interval_days), clock)


def get_ingestion_service(
    task_store: Annotated[TaskStore, Depends(get_task_store)],
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TaskIngestionService:
    uploader = ArtifactUploader(blob_store, settings.audio_bucket, settings.content_bucket)
    return TaskIngestionService(
        task_store,
        uploader,
        default_total_topics=settings.default_total_topics,
        max_upload_bytes=settings.max_upload_bytes,
        allowed_extensions=settings.allowed_content_extensions,
        clock=clock,
    )


def get_study_session_service(
    task_store: Annotated[TaskStore, Depends(get_task_store)],
    analyzer: Annotated[ContentAnalyzer, Depends(get_content_analyzer)],
    progress_engine: Annotated[ProgressEngine, Depends(get_progress_engine)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> StudySessionService:
    return StudySessionService(task_store, analyzer, progress_engine, registry)
