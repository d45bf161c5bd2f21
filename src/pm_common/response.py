"""ApiResponse envelope shared by every endpoint.

{"code": 0, "message": "success", "data": {...}, "timestamp": "...", "request_id": "req_..."}

code 0 is success; anything else is the AppError code and data is null.
The request id is the one RequestLogMiddleware put on request.state, so the
body and the X-Request-Id header always agree.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump()
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def success_response(data: Any = None, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(data=_dump(data))
    if request_id is not None:
        resp.request_id = request_id
    return resp


def error_response(code: int, message: str, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(code=code, message=message)
    if request_id is not None:
        resp.request_id = request_id
    return resp


def request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def respond(request: Request, data: Any = None) -> ApiResponse:
    """Success envelope for a route; pydantic models (or lists of them) are dumped."""
    return success_response(data, request_id_of(request))
