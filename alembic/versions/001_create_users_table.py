"""Create users table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `users` table holding one profile per authorized email.
How:   Portable column types only, so the same revision runs on PostgreSQL
       and MySQL.

Rollback: downgrade() drops the table entirely (destructive, all profiles lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the users table; column notes live in profile_service/models/user.py."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("firstname", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("lastname", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "email",
            sa.String(255),
            nullable=False,
            comment="External identity key, as claimed by the bearer credential",
        ),
        sa.Column("avatar", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("phone", sa.String(50), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "status",
            sa.SmallInteger(),
            nullable=False,
            server_default=sa.text("1"),
            comment="0 = disabled, 1 = active",
        ),
        sa.PrimaryKeyConstraint("id"),
        # One row per distinct email
        sa.UniqueConstraint("email", name="uq_users_email"),
    )


def downgrade() -> None:
    """
    Drop the users table entirely.

    WARNING: destructive. In production prefer a forward migration that
    archives data first.
    """
    op.drop_table("users")
