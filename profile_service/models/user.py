"""
Profile Service - User SQLAlchemy Model
========================================

What:  ORM model for the `users` table.
Who:   Used by UserService for reads/inserts/updates and by Alembic.

Table Design:
    - id: internal surrogate key; never leaves the service
    - email: external identity key, unique (one row per authorized identity)
    - status: 0 = disabled, 1 = active
    - description / phone: free text edited by the profile owner
    - avatar: file name of the avatar image ("1.jpg" .. "8.jpg" by default)

Rows are created lazily on the first authenticated read and never deleted
by this service.
"""

from sqlalchemy import Integer, SmallInteger, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from profile_service.database import Base

STATUS_DISABLED = 0
STATUS_ACTIVE = 1


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    firstname: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", server_default=text("''")
    )
    lastname: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", server_default=text("''")
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="External identity key, as claimed by the bearer credential",
    )

    avatar: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", server_default=text("''")
    )
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=text("''")
    )
    phone: Mapped[str] = mapped_column(
        String(50), nullable=False, default="", server_default=text("''")
    )

    status: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=STATUS_ACTIVE,
        server_default=text("1"),
        comment="0 = disabled, 1 = active",
    )

    def __repr__(self) -> str:
        return f"<User(email='{self.email}', status={self.status})>"
