"""Repository ingestion Celery task."""

import logging
from typing import Any

from gitextractor.celery_app import celery_app
from gitextractor.config import get_settings
from gitextractor.database import get_session_factory
from gitextractor.exceptions import AcquisitionError, BatchFlushError
from gitextractor.schemas.options import AcquisitionOptions
from gitextractor.services.acquisition_service import AcquisitionService
from gitextractor.services.extractor import load_extractor
from gitextractor.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)

# Bad options and unsupported locators are never retried
RETRYABLE_ERRORS = (AcquisitionError, BatchFlushError)


def run_ingestion(options: dict[str, Any]) -> dict[str, Any]:
    """Validate ``options`` and ingest the repository synchronously."""
    settings = get_settings()
    parsed = AcquisitionOptions.parse(options)

    service = IngestionService(
        session_factory=get_session_factory(),
        acquisition_service=AcquisitionService(settings.clone_base_dir),
        batch_size=settings.batch_size,
    )
    result = service.run(parsed, load_extractor(settings.extractor_class))
    return result.to_dict()


@celery_app.task(bind=True, max_retries=3)
def ingest_repository(self, options: dict[str, Any]) -> dict[str, Any]:
    """Celery task to ingest a repository.

    Args:
        options: AcquisitionOptions fields (repo_id, url, credentials)

    Returns:
        Dict with per-kind row counts
    """
    try:
        return run_ingestion(options)
    except RETRYABLE_ERRORS as e:
        logger.error(f"Ingestion task failed for {options.get('repo_id')}: {e}")
        # Rows already flushed are overwritten by key on retry
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries))
