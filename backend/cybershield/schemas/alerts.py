from pydantic import BaseModel


class AlertCounts(BaseModel):
    """Unread alerts per severity."""
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class MarkReadResponse(BaseModel):
    success: bool = True
    updated: int = 0
