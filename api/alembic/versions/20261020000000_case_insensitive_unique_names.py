"""case-insensitive unique indexes on usernames, emails and tag names

Revision ID: 20261020000000
Revises: 20261019000000
Create Date: 2026-10-20 00:00:00.000000

The plain unique indexes let "Marketing" and "marketing" coexist; these
reject rows that differ only by case.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261020000000"
down_revision = "20261019000000"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_index(
        "uq_users_username_lower", "users", [sa.text("lower(username)")], unique=True
    )
    op.create_index(
        "uq_users_email_lower", "users", [sa.text("lower(email)")], unique=True
    )
    op.create_index(
        "uq_tags_name_lower", "tags", [sa.text("lower(name)")], unique=True
    )


def downgrade() -> None:
    op.drop_index("uq_tags_name_lower", table_name="tags")
    op.drop_index("uq_users_email_lower", table_name="users")
    op.drop_index("uq_users_username_lower", table_name="users")
