from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base

USER_STATUSES = ("active", "inactive", "suspended")
PROCESSING_STATUSES = ("pending", "processing", "completed", "failed")


# ============================================================================
# CORE ENTITIES
# ============================================================================


class User(Base):
    """User account owning posts."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)  # Opaque, never logged or serialized
    profile_image = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active", server_default="active")

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    posts = relationship("Post", back_populates="owner", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')", name="ck_users_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} status={self.status!r}>"


# Names compare case-insensitively, so uniqueness is enforced on lower(...)
Index("uq_users_username_lower", func.lower(User.username), unique=True)
Index("uq_users_email_lower", func.lower(User.email), unique=True)


class Post(Base):
    """User-submitted content, optionally with an attached file."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Content (may be empty for media-only posts)
    content = Column(Text, nullable=True)
    file_path = Column(String(255), nullable=True)
    file_type = Column(String(50), nullable=True)
    file_size = Column(Integer, nullable=True)  # Bytes

    # pending -> processing -> completed | failed
    processing_status = Column(
        String(20), nullable=False, default="pending", server_default="pending", index=True
    )

    # Timestamps
    upload_date = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    last_modified = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="posts")
    analysis = relationship(
        "Analysis", back_populates="post", uselist=False, passive_deletes=True
    )
    tags = relationship(
        "Tag", secondary="post_tags", viewonly=True, order_by="Tag.name"
    )

    __table_args__ = (
        CheckConstraint(
            "processing_status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_posts_processing_status",
        ),
        Index("ix_posts_user_upload", user_id, upload_date.desc()),
    )


class Analysis(Base):
    """Derived scores for a post. At most one row per post."""

    __tablename__ = "analysis"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    post_id = Column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    sentiment_score = Column(Numeric(3, 2), nullable=False)  # -1.00 .. 1.00
    engagement_score = Column(Numeric(5, 2), nullable=False)  # 0.00 .. 100.00
    readability_score = Column(Numeric(5, 2), nullable=True)
    suggestions = Column(Text, nullable=True)
    keywords = Column(Text, nullable=True)

    # Timestamps
    analysis_date = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    last_updated = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    post = relationship("Post", back_populates="analysis")

    __table_args__ = (
        CheckConstraint(
            "sentiment_score >= -1 AND sentiment_score <= 1",
            name="ck_analysis_sentiment_range",
        ),
        CheckConstraint(
            "engagement_score >= 0 AND engagement_score <= 100",
            name="ck_analysis_engagement_range",
        ),
    )


class Tag(Base):
    """Category label that can be attached to posts."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


Index("uq_tags_name_lower", func.lower(Tag.name), unique=True)


class PostTag(Base):
    """Association between a post and a tag."""

    __tablename__ = "post_tags"

    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id = Column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True
    )


# ============================================================================
# AUDIT
# ============================================================================


class AuditEntry(Base):
    """Append-only record of a notable event (deletions, anomalous scores, failures)."""

    __tablename__ = "error_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    entity_type = Column(String(50), nullable=False)  # "post", "analysis", ...
    entity_id = Column(Integer, nullable=True)
    message = Column("error_message", Text, nullable=False)
    stack_trace = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    __table_args__ = (
        Index("ix_error_logs_entity", entity_type, entity_id),
    )
