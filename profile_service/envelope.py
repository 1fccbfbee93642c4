"""
Profile Service - Response Envelope Builder
============================================

What:  Builds and serializes the uniform response body sent by every stage
       of the pipeline:

           {"success": bool, "code": int, "message": str, "data": {...} | [...]}

How:   payload() constructs an Envelope; output() turns it into the
       JSONResponse that ends the request. timeout() and not_found() are
       shorthands for those two conditions. Middleware, gates, handlers and
       exception handlers all go through one ResponseBuilder, so the failure
       body has the same shape whichever stage produced it.
"""

from typing import Any, Dict, List, Optional, Union

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from profile_service.codes import ResponseCodes, response_codes


class Envelope(BaseModel):
    """The response body contract. `data` is a mapping or an ordered list of records."""

    success: bool
    code: int
    message: str
    data: Union[Dict[str, Any], List[Any]] = Field(default_factory=dict)


class ResponseBuilder:
    """
    Envelope construction and serialization over a response-code table.

    Stateless apart from the (immutable) code table; one instance serves
    every request.
    """

    def __init__(self, codes: ResponseCodes):
        self.codes = codes

    def payload(
        self,
        success: bool,
        code: int,
        message: Optional[str] = None,
        data: Any = None,
    ) -> Envelope:
        """Build an envelope; a missing message is looked up in the code table."""
        return Envelope(
            success=success,
            code=code,
            message=message if message is not None else self.codes.message(code),
            data={} if data is None else jsonable_encoder(data),
        )

    def output(
        self,
        envelope: Envelope,
        status_code: int = 200,
        media_type: str = "application/json",
        headers: Optional[Dict[str, str]] = None,
    ) -> JSONResponse:
        """Serialize `envelope` into the response that ends the request."""
        return JSONResponse(
            content=envelope.model_dump(),
            status_code=status_code,
            media_type=media_type,
            headers=headers,
        )

    def timeout(
        self,
        status_code: int = 408,
        message: Optional[str] = None,
        data: Any = None,
    ) -> Envelope:
        return self.payload(False, status_code, message, data)

    def not_found(self, message: Optional[str] = None, data: Any = None) -> Envelope:
        return self.payload(False, 404, message, data)


# Singleton instance shared by the whole pipeline
responses = ResponseBuilder(response_codes)
