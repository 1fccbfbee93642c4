"""
Profile Service - User Route Handlers
======================================

What:  GET /user/ and PUT /user/ for the authorized caller's own profile.
How:   The authorization gate (require_identity) and, for PUT, the
       validation gate (validated_body) run as dependencies before the
       handler; either may end the request with its own envelope.

Response codes (body `code`, HTTP status in brackets):
    GET  200 [200] profile records      PUT  200 [200] updated records
         600 [200] row not readable          400 [200] validation errors
         601 [200] account disabled          500 [500] store failure
         500 [500] store failure          401/403 [401/403] credential
      401/403 [401/403] credential
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.auth import require_identity
from profile_service.database import get_db_session
from profile_service.envelope import Envelope, responses
from profile_service.schemas.user import Identity, UserUpdate
from profile_service.services.user_service import user_service
from profile_service.validation import validated_body

router = APIRouter(prefix="/user", tags=["User"])


@router.get(
    "/",
    response_model=Envelope,
    summary="Read the caller's profile",
    description=(
        "Returns the profile of the authorized caller. The profile is created on "
        "first access from the credential's name claims, with a stock avatar."
    ),
)
async def get_user(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    records = await user_service.get_or_create_profile(db, identity)
    return responses.output(
        responses.payload(True, 200, "Success retrieving user data", records), 200
    )


@router.put(
    "/",
    response_model=Envelope,
    summary="Update the caller's profile",
    description=(
        "Overwrites firstname, lastname, description, phone and avatar. "
        "firstname and lastname must be non-empty; omitted optional fields are cleared."
    ),
)
async def update_user(
    identity: Identity = Depends(require_identity),
    changes: UserUpdate = Depends(validated_body(UserUpdate)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    records = await user_service.update_profile(db, identity, changes)
    return responses.output(
        responses.payload(True, 200, "User updated successfully", records), 200
    )
