"""Unified API response wrapper.

All API endpoints return this format:
{
    "code": 0,           // 0=success, non-0=error code
    "message": "success",
    "data": { ... },     // null on success-less calls; error details on error
    "timestamp": "...",
    "request_id": "..."
}

On error, ``data`` is ``{"kind": ..., "retryable": ...}`` so the UI can tell
a retryable conflict from a business-rule rejection.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data)


def error_response(
    code: int, message: str, kind: str = "INTERNAL", retryable: bool = False
) -> ApiResponse:
    return ApiResponse(
        code=code,
        message=message,
        data={"kind": kind, "retryable": retryable},
    )
