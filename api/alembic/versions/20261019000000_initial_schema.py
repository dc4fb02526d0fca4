"""initial schema - users, posts, analysis, tags, post_tags, error_logs

Revision ID: 20261019000000
Revises:
Create Date: 2026-10-19 00:00:00.000000

analysis.post_id carries a unique index: one analysis row per post.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261019000000"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ========================================================================
    # USERS
    # ========================================================================

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("profile_image", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')", name="ck_users_status"
        ),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ========================================================================
    # POSTS
    # ========================================================================

    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("file_path", sa.String(255), nullable=True),
        sa.Column("file_type", sa.String(50), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column(
            "processing_status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column(
            "upload_date",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "processing_status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_posts_processing_status",
        ),
    )
    op.create_index("ix_posts_id", "posts", ["id"])
    op.create_index("ix_posts_user_id", "posts", ["user_id"])
    op.create_index("ix_posts_processing_status", "posts", ["processing_status"])
    op.create_index("ix_posts_upload_date", "posts", ["upload_date"])
    op.create_index(
        "ix_posts_user_upload", "posts", ["user_id", sa.text("upload_date DESC")]
    )

    # ========================================================================
    # ANALYSIS
    # ========================================================================

    op.create_table(
        "analysis",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sentiment_score", sa.Numeric(3, 2), nullable=False),
        sa.Column("engagement_score", sa.Numeric(5, 2), nullable=False),
        sa.Column("readability_score", sa.Numeric(5, 2), nullable=True),
        sa.Column("suggestions", sa.Text(), nullable=True),
        sa.Column("keywords", sa.Text(), nullable=True),
        sa.Column(
            "analysis_date",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "sentiment_score >= -1 AND sentiment_score <= 1",
            name="ck_analysis_sentiment_range",
        ),
        sa.CheckConstraint(
            "engagement_score >= 0 AND engagement_score <= 100",
            name="ck_analysis_engagement_range",
        ),
    )
    op.create_index("ix_analysis_id", "analysis", ["id"])
    op.create_index("ix_analysis_post_id", "analysis", ["post_id"], unique=True)

    # ========================================================================
    # TAGS
    # ========================================================================

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_tags_id", "tags", ["id"])
    op.create_index("ix_tags_name", "tags", ["name"], unique=True)

    op.create_table(
        "post_tags",
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            sa.Integer(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_post_tags_tag_id", "post_tags", ["tag_id"])

    # ========================================================================
    # AUDIT LOG
    # ========================================================================

    op.create_table(
        "error_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("stack_trace", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_error_logs_id", "error_logs", ["id"])
    op.create_index("ix_error_logs_created_at", "error_logs", ["created_at"])
    op.create_index("ix_error_logs_entity", "error_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("error_logs")
    op.drop_table("post_tags")
    op.drop_table("tags")
    op.drop_table("analysis")
    op.drop_table("posts")
    op.drop_table("users")
