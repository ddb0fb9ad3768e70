"""Health check endpoints for monitoring and load balancers."""
from pathlib import Path
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
import redis

from tideway.database import get_db
from tideway.config import settings
from tideway import __version__


router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns status of all critical dependencies.
    """
    status = {
        "status": "healthy",
        "version": __version__,
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        status["checks"]["database"] = "ok"
    except Exception as e:
        status["checks"]["database"] = f"error: {str(e)}"
        status["status"] = "unhealthy"

    # Redis is only needed when finalization runs on the worker
    if settings.finalize_in_background:
        try:
            r = redis.from_url(settings.redis_url)
            r.ping()
            status["checks"]["redis"] = "ok"
        except Exception as e:
            status["checks"]["redis"] = f"error: {str(e)}"
            status["status"] = "unhealthy"

    for name, path in (
        ("storage_chunks", settings.storage_chunks),
        ("storage_tracks", settings.storage_tracks),
        ("storage_thumbnails", settings.storage_thumbnails),
    ):
        storage_path = Path(path)
        if storage_path.exists() and storage_path.is_dir():
            status["checks"][name] = "ok"
        else:
            status["checks"][name] = "not accessible"
            if status["status"] == "healthy":
                status["status"] = "degraded"

    return status


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check - is the service ready to handle requests?

    Used by Kubernetes/orchestrators to determine if traffic can be routed.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"ready": True}
    except Exception:
        return {"ready": False}


@router.get("/live")
def liveness_check():
    """Liveness check - is the process alive?"""
    return {"alive": True, "version": __version__}
