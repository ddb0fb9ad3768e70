"""API routes."""
from fastapi import APIRouter
from tideway.api import uploads, tracks, favorites, history, playlists

api_router = APIRouter()

# Uploads
api_router.include_router(uploads.router, tags=["uploads"])

# Library
api_router.include_router(tracks.router, tags=["tracks"])
api_router.include_router(favorites.router, tags=["favorites"])
api_router.include_router(history.router, tags=["history"])
api_router.include_router(playlists.router, tags=["playlists"])
