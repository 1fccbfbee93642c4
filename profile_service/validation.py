"""
Profile Service - Validation Gate
==================================

What:  Validates a request body against a pydantic schema before the route
       handler runs.
How:   validated_body(Model) returns a FastAPI dependency. It reads the body
       as JSON or as a form, validates it, and on failure raises
       ValidationError listing every failing field. The handler only runs
       with a valid model instance.

Error item shape:
    {"field": "firstname", "message": "First name is required and cannot be empty",
     "location": "body"}
"""

import json
from typing import Any, Callable, Dict, List, Type, TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from profile_service.context import RequestContext, get_request_context
from profile_service.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def format_errors(exc: SchemaValidationError, location: str = "body") -> List[Dict[str, Any]]:
    """Flatten pydantic errors into the envelope's `errors` items."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or location
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")
        errors.append({"field": field, "message": message, "location": location})
    return errors


async def read_body(request: Request) -> Dict[str, Any]:
    """
    The request body as a dict.

    JSON and form bodies are both accepted. An empty or malformed body reads
    as {} so the field predicates report what is missing.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def validated_body(model: Type[ModelT]) -> Callable[..., Any]:
    """Dependency factory: the validated `model` instance, or ValidationError."""

    async def dependency(
        request: Request,
        ctx: RequestContext = Depends(get_request_context),
    ) -> ModelT:
        body = await read_body(request)
        try:
            return model.model_validate(body)
        except SchemaValidationError as exc:
            errors = format_errors(exc)
            ctx.logger.warning(
                "Validation failed for %s: %s",
                model.__name__,
                ", ".join(error["field"] for error in errors),
            )
            raise ValidationError(errors=errors) from exc

    return dependency
