from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint"""

    success: bool = True
    message: Optional[str] = None
    data: T


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    code: Optional[str] = None
    errors: Optional[list[Any]] = None


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime
    database: str
