from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class Problem(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs."""

    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserCreate(BaseModel):
    """Registration payload. The password arrives already hashed."""

    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    password_hash: str = Field(..., min_length=1, max_length=255)
    profile_image: str | None = Field(None, max_length=255)
    status: Literal["active", "inactive", "suspended"] = "active"


class User(BaseModel):
    """User as returned by the API (never includes the credential hash)."""

    id: int
    username: str
    email: str
    profile_image: str | None = None
    status: str
    created_at: datetime
    last_login: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# POST SCHEMAS
# ============================================================================


class PostCreate(BaseModel):
    user_id: int
    content: str | None = None
    file_path: str | None = Field(None, max_length=255)
    file_type: str | None = Field(None, max_length=50)
    file_size: int | None = None


class Post(BaseModel):
    id: int
    user_id: int
    content: str | None = None
    file_path: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    processing_status: str
    upload_date: datetime
    last_modified: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProcessingStatusUpdate(BaseModel):
    status: Literal["pending", "processing", "completed", "failed"]


class AnalyzeResponse(BaseModel):
    post_id: int
    task_id: str
    status: Literal["queued"] = "queued"


# ============================================================================
# ANALYSIS SCHEMAS
# ============================================================================


class AnalysisUpsert(BaseModel):
    """
    Scores produced by the external scorer.

    Bounds are enforced by the upsert engine, which answers with OutOfRange.
    readability and keywords are left untouched on update when omitted.
    """

    sentiment: Decimal
    engagement: Decimal
    suggestions: str | None = None
    readability: Decimal | None = None
    keywords: str | None = None


class Analysis(BaseModel):
    id: int
    post_id: int
    sentiment_score: Decimal
    engagement_score: Decimal
    readability_score: Decimal | None = None
    suggestions: str | None = None
    keywords: str | None = None
    analysis_date: datetime
    last_updated: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class Tag(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# AUDIT & STATS SCHEMAS
# ============================================================================


class AuditEntry(BaseModel):
    id: int
    entity_type: str
    entity_id: int | None = None
    message: str
    stack_trace: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserAnalytics(BaseModel):
    user_id: int
    username: str
    total_posts: int
    avg_engagement: Decimal | None = None
    avg_sentiment: Decimal | None = None
    last_post_date: datetime | None = None
    unique_tags_used: int

    model_config = ConfigDict(from_attributes=True)


class PostPerformance(BaseModel):
    post_id: int
    user_id: int
    username: str
    content: str | None = None
    sentiment_score: Decimal | None = None
    engagement_score: Decimal | None = None
    readability_score: Decimal | None = None
    tags: list[str]

    model_config = ConfigDict(from_attributes=True)
