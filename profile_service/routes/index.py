"""
Profile Service - Index Route
==============================

GET / answers with a static success envelope; no auth, no side effects.
Useful as a liveness probe.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from profile_service.config import settings
from profile_service.envelope import responses

router = APIRouter(tags=["Index"])


@router.get("/", summary="Service banner")
async def index() -> JSONResponse:
    return responses.output(responses.payload(True, 200, settings.api_message, {}), 200)
