"""Uniform API envelope.

Every endpoint answers with:
{
    "code": 0,            // 0 on success, AppError.code otherwise
    "message": "success",
    "data": { ... },      // null on error, field errors for code 1001
    "retryable": false,   // true when the same request may succeed later
    "timestamp": "...",
    "request_id": "..."   // echoes X-Request-ID when the client sent one
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.ub_common.datetime_utils import utc_now


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    retryable: bool = False
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(data=data)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(
    code: int,
    message: str,
    data: Any = None,
    retryable: bool = False,
    request_id: str | None = None,
) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, data=data, retryable=retryable)
    if request_id:
        resp.request_id = request_id
    return resp
