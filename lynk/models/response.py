"""
Response models for the web API
"""

from typing import Optional, Any
from pydantic import BaseModel


class ActionResponse(BaseModel):
    """Result of a board action"""
    message: str
    success: bool = True
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    success: bool = False
    error_code: Optional[str] = None
    details: Optional[dict] = None
