"""Tideway API - Main application entry point."""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from tideway.api import api_router
from tideway.api.health import router as health_router
from tideway import __version__
from tideway.config import settings
from tideway.logging_config import setup_logging

# Initialize logging
setup_logging()


def ensure_storage_dirs():
    """Create chunk, track and thumbnail storage roots."""
    for path in (settings.storage_chunks, settings.storage_tracks, settings.storage_thumbnails):
        Path(path).mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    ensure_storage_dirs()
    yield
    # Shutdown (nothing needed)


app = FastAPI(
    title="Tideway",
    description="Music streaming backend - Resumable uploads, library, playlists",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
# In production, set CORS_ORIGINS env var to your domain(s)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")

# Include health routes (not under /api prefix)
app.include_router(health_router)


@app.get("/")
def root():
    """Root endpoint - API info."""
    return {
        "name": "Tideway",
        "version": __version__,
        "docs": "/docs",
    }
