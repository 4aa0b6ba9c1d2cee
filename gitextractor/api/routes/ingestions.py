"""Ingestion routes."""

import logging

from fastapi import APIRouter, HTTPException, status

from gitextractor.exceptions import UnsupportedScheme
from gitextractor.schemas.options import AcquisitionOptions, IngestionAccepted
from gitextractor.services.acquisition_service import select_strategy
from gitextractor.tasks.ingest_repo import ingest_repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=IngestionAccepted, status_code=status.HTTP_202_ACCEPTED)
async def trigger_ingestion(options: AcquisitionOptions):
    """Queue an ingestion run for a repository.

    The locator is checked up front so that unsupported schemes are rejected
    before anything is queued. Credentials travel to the worker inside the
    task message, so the broker must be private to the deployment.
    """
    try:
        strategy = select_strategy(options.url)
    except UnsupportedScheme as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    task = ingest_repository.delay(options.model_dump())
    logger.info(f"Queued ingestion of {options.repo_id} via {strategy.value}: {task.id}")

    return IngestionAccepted(task_id=task.id, repo_id=options.repo_id)
