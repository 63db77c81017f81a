"""
Readlog Backend - Response Envelope
====================================

What:  The uniform JSON wrapper returned by every endpoint:
           {"success": bool, "message"?: str, "data"?: T, "error"?: str}
How:   Routes build successes with `envelope_response`; the global exception
       handlers build failures with `error_response`. Keys whose value is
       absent are omitted from the body.
       `Envelope[T]` is only used as `response_model` so the OpenAPI docs
       describe the wrapped payload.
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = Field(description="True when the operation succeeded")
    message: Optional[str] = Field(default=None, description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Operation result")
    error: Optional[str] = Field(default=None, description="Error description when success is false")


def envelope_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = 200,
) -> JSONResponse:
    """Wrap a successful result in the envelope."""
    content: Dict[str, Any] = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    status_code: int,
    error: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Wrap a failure in the envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )
