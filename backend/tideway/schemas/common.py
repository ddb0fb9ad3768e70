"""Common schema patterns."""
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str


class DurationSchema(BaseModel):
    """Interval triple as stored."""
    months: int = 0
    days: int = 0
    microseconds: int = 0
