"""Celery background tasks."""
from tideway.tasks.uploads import finalize_upload_task, recover_stalled_finalizations

__all__ = [
    "finalize_upload_task",
    "recover_stalled_finalizations",
]
