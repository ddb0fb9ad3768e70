"""Translate service errors into HTTP responses."""
from fastapi import HTTPException

from tideway.exceptions import (
    DecodeError,
    FinalizationError,
    NotOwner,
    OutOfRange,
    PlaylistNotFound,
    ProtocolError,
    StorageError,
    TidewayError,
    TrackNotEligible,
    TrackNotFound,
)

# Checked in order; first match wins
STATUS_CODES = (
    (TrackNotFound, 404),
    (PlaylistNotFound, 404),
    (NotOwner, 403),
    (OutOfRange, 400),
    (TrackNotEligible, 409),
    (ProtocolError, 409),
    (StorageError, 503),
    (FinalizationError, 422),
    (DecodeError, 422),
)


def http_error(error: TidewayError) -> HTTPException:
    """HTTPException for a service error."""
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
