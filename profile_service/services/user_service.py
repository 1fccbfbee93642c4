"""
Profile Service - User Service (Profile Business Logic)
========================================================

What:  Reads, lazily creates and updates the caller's profile row.
How:   Each operation issues one to three independent statements through the
       request's AsyncSession and commits writes immediately. There is no
       multi-statement transaction: a crash between the insert and the
       re-read leaves a row the next call will simply find.
Who:   Called by the /user/ route handlers.

GET flow:

    select by email ──▶ rows? ──no──▶ insert (random avatar, status=1)
          ▲                │                   │
          └────────────────┼───── re-select ◀──┘
                           ▼
            none        → ProfileNotFoundError (600, soft)
            status == 0 → AccountDisabledError (601, soft)
            otherwise   → rows without `id`

Error Handling Strategy:
    Driver errors are logged with context and wrapped in DatabaseError,
    which the global handler renders as the generic 500 envelope. Nothing is
    retried; the client re-issues the request.
"""

import logging
import random
from typing import Any, Dict, List, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.exceptions import (
    AccountDisabledError,
    DatabaseError,
    InternalError,
    ProfileNotFoundError,
    ProfileServiceError,
)
from profile_service.models.user import STATUS_ACTIVE, STATUS_DISABLED, User
from profile_service.schemas.user import Identity, UserUpdate

logger = logging.getLogger(__name__)

AVATAR_COUNT = 8
INTERNAL_FIELDS = ("id",)


def random_avatar() -> str:
    """One of the stock avatars, "1.jpg" .. "8.jpg"."""
    return f"{random.randint(1, AVATAR_COUNT)}.jpg"


def sanitize(rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop internal fields from every record before it leaves the service."""
    return [
        {key: value for key, value in row.items() if key not in INTERNAL_FIELDS}
        for row in rows
    ]


class UserService:
    """
    Profile operations for an authorized identity.

    Stateless; the session and identity are passed to every call.
    """

    async def find_by_email(self, db: AsyncSession, email: str) -> List[Dict[str, Any]]:
        result = await db.execute(select(User.__table__).where(User.email == email))
        return [dict(row) for row in result.mappings().all()]

    async def create_profile(self, db: AsyncSession, identity: Identity) -> None:
        values = {
            "firstname": identity.firstname,
            "lastname": identity.lastname,
            "email": identity.email,
            "avatar": random_avatar(),
            "status": STATUS_ACTIVE,
        }
        try:
            await db.execute(insert(User).values(**values))
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error("Error inserting user %s: %s", identity.email, e, exc_info=True)
            raise DatabaseError(
                context={"operation": "insert", "error_type": type(e).__name__}
            ) from e
        logger.info("New user inserted successfully: %s (avatar=%s)", identity.email, values["avatar"])

    async def get_or_create_profile(
        self, db: AsyncSession, identity: Identity
    ) -> List[Dict[str, Any]]:
        """
        The caller's profile, created on first access.

        Returns:
            The profile records with internal fields removed.

        Raises:
            InternalError:         the identity has no email (cannot happen
                                   past the authorization gate)
            DatabaseError:         any store failure, insert included
            AccountDisabledError:  the profile is disabled
            ProfileNotFoundError:  the row is still missing after the insert
        """
        if not identity.email:
            logger.error("Authorized identity carries no email")
            raise InternalError(context={"reason": "identity without email"})

        try:
            rows = await self.find_by_email(db, identity.email)
            if not rows:
                await self.create_profile(db, identity)
                rows = await self.find_by_email(db, identity.email)
        except ProfileServiceError:
            raise
        except Exception as e:
            logger.error("Error retrieving user data for %s: %s", identity.email, e, exc_info=True)
            raise DatabaseError(
                context={"operation": "select", "error_type": type(e).__name__}
            ) from e

        if not rows:
            raise ProfileNotFoundError()
        if rows[0].get("status") == STATUS_DISABLED:
            logger.info("Disabled account requested its profile: %s", identity.email)
            raise AccountDisabledError()
        return sanitize(rows)

    async def update_profile(
        self, db: AsyncSession, identity: Identity, changes: UserUpdate
    ) -> List[Dict[str, Any]]:
        """
        Overwrite the editable profile fields of the caller's row.

        The match is on the exact email, never a pattern.
        """
        try:
            await db.execute(
                update(User)
                .where(User.email == identity.email)
                .values(
                    firstname=changes.firstname,
                    lastname=changes.lastname,
                    description=changes.description,
                    phone=changes.phone,
                    avatar=changes.avatar,
                )
            )
            await db.commit()
            rows = await self.find_by_email(db, identity.email)
        except Exception as e:
            await db.rollback()
            logger.error("Error updating user %s: %s", identity.email, e, exc_info=True)
            raise DatabaseError(
                context={"operation": "update", "error_type": type(e).__name__}
            ) from e

        return sanitize(rows)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
