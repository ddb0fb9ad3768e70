"""Celery tasks for upload finalization."""
import logging

from sqlalchemy.exc import OperationalError

from tideway.database import SessionLocal
from tideway.exceptions import FinalizationError
from tideway.services.finalizer import Finalizer
from tideway.worker import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="tideway.tasks.uploads.finalize_upload_task",
    max_retries=3,
    default_retry_delay=30,
)
def finalize_upload_task(self, track_id: str) -> dict:
    """Finalize a fully received upload in the background.

    Args:
        track_id: Track whose chunks are all in

    Returns:
        Dict with status and, on failure, the reason
    """
    db = SessionLocal()
    try:
        track = Finalizer(db).finalize(track_id)
        if track is None:
            return {"status": "skipped", "track_id": track_id}
        return {"status": "complete", "track_id": track_id}
    except FinalizationError as e:
        return {"status": "failed", "track_id": track_id, "error": e.reason}
    except OperationalError as e:
        # Database unavailable; a claim left behind is picked up by the recovery sweep
        logger.warning(f"Database error finalizing {track_id}, retrying: {e}")
        raise self.retry(exc=e)
    finally:
        db.close()


@celery_app.task(name="tideway.tasks.uploads.recover_stalled_finalizations")
def recover_stalled_finalizations(older_than_minutes: int = None) -> dict:
    """Finish finalizations abandoned mid-way or never claimed."""
    db = SessionLocal()
    try:
        result = Finalizer(db).recover_stalled(older_than_minutes)
        return {key: len(ids) for key, ids in result.items()}
    finally:
        db.close()
