"""Shared response models for API endpoints."""
from typing import Annotated, Literal, Optional, Any
from pydantic import BaseModel, Field


class QueueCounts(BaseModel):
    pending: int = 0
    processing: int = 0
    sent: int = 0
    failed: int = 0
    total: int = 0


class HealthResponse(BaseModel):
    status: Annotated[Literal["healthy", "degraded"], Field()]
    version: Annotated[str, Field()]
    timestamp: Annotated[str, Field()]
    scheduler_running: bool = False
    queue: Optional[QueueCounts] = None
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    code: Annotated[
        Literal[
            "INVALID_FORMAT",
            "NOT_AUTHORIZED",
            "NOT_FOUND",
            "INVALID_STATE",
            "STORE_UNAVAILABLE",
            "DELIVERY_FAILED",
            "INTERNAL_ERROR",
        ],
        Field(),
    ]
    message: Annotated[str, Field()]
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
