"""Business logic services."""
from tideway.services.auth import AuthService
from tideway.services.chunk_store import LocalChunkStore
from tideway.services.upload_tracker import UploadTracker
from tideway.services.finalizer import Finalizer
from tideway.services.library import LibraryService
from tideway.services.resume import ResumeService
from tideway.services.history import HistoryService
from tideway.services.favorites import FavoriteService
from tideway.services.playlists import PlaylistService

__all__ = [
    "AuthService",
    "LocalChunkStore",
    "UploadTracker",
    "Finalizer",
    "LibraryService",
    "ResumeService",
    "HistoryService",
    "FavoriteService",
    "PlaylistService",
]
