"""Response envelope shared by every management API route."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from devtoolbox.errors import DevToolboxError


class ApiError(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ApiResponse(BaseModel):
    """``{success, data?, error?, timestamp}`` wrapper."""

    success: bool
    data: Any = None
    error: Optional[ApiError] = None
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(data: Any = None, status_code: int = 200) -> JSONResponse:
    body = ApiResponse(success=True, data=jsonable_encoder(data), timestamp=_now())
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def error_response(
    error: DevToolboxError, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    body = ApiResponse(
        success=False,
        error=ApiError(**error.to_dict()),
        timestamp=_now(),
    )
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder(body.model_dump(exclude_none=True)),
        headers=headers,
    )
