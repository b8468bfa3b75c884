"""
Generic response schemas
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, Dict
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    """Error detail schema"""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = {}


class ErrorResponse(BaseModel):
    """Error envelope returned for every handled application error"""
    success: bool = False
    error: ErrorDetail
    timestamp: datetime = Field(default_factory=_now)


class MessageResponse(BaseModel):
    """Simple message response"""
    success: bool = True
    message: str
    timestamp: datetime = Field(default_factory=_now)
