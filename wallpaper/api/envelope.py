"""Response envelope and handler results.

Every JSON response the API produces has the same shape:

    {"success": true, "error": false, "message": "...", "data": {...}}
    {"success": false, "error": true, "message": "...", "errors": [...]}

Handlers return `Ok` or `Err` instead of building responses themselves;
`render` is the single place that turns a result into an HTTP response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Union

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.responses import Response

from wallpaper.api.errors import ApiError


class ResponseEnvelope(BaseModel):
    """Uniform JSON body for all API responses."""

    success: bool = Field(..., description="True when the request succeeded")
    error: bool = Field(..., description="Always the negation of success")
    message: str = Field(..., description="Human-readable outcome", min_length=1)
    data: Optional[Any] = Field(None, description="Payload on success")
    errors: Optional[List[Any]] = Field(None, description="Detail messages on failure")

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ResponseEnvelope":
        return cls(success=True, error=False, message=message, data=data)

    @classmethod
    def fail(cls, message: str, errors: Optional[List[Any]] = None) -> "ResponseEnvelope":
        return cls(success=False, error=True, message=message, errors=errors)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True)
class Ok:
    """Successful handler outcome."""

    envelope: ResponseEnvelope
    status_code: int = 200


@dataclass(frozen=True)
class Err:
    """Failed handler outcome."""

    error: ApiError


HandlerResult = Union[Ok, Err, Response]


def success(message: str, data: Any = None, status_code: int = 200) -> Ok:
    return Ok(ResponseEnvelope.ok(message, data), status_code)


def created(message: str = "Resource created successfully", data: Any = None) -> Ok:
    return success(message, data, status_code=201)


def failure(error: ApiError) -> Err:
    return Err(error)


def error_response(error: ApiError, headers: Optional[dict] = None) -> JSONResponse:
    """Render an `ApiError` as a failure envelope with its mapped status."""
    return JSONResponse(
        ResponseEnvelope.fail(error.message, error.errors).to_json(),
        status_code=error.status_code,
        headers=headers,
    )


def render(result: HandlerResult) -> Response:
    """Translate a handler result into an HTTP response."""
    if isinstance(result, Ok):
        return JSONResponse(result.envelope.to_json(), status_code=result.status_code)
    if isinstance(result, Err):
        return error_response(result.error)
    if isinstance(result, Response):
        return result
    raise TypeError(f"Handler returned unsupported result type: {type(result).__name__}")


__all__ = [
    "Err",
    "HandlerResult",
    "Ok",
    "ResponseEnvelope",
    "created",
    "error_response",
    "failure",
    "render",
    "success",
]
