"""
Read-only analytics over users, posts, analyses and tags.

Provides the per-user analytics and per-post performance views. Per-user
figures are computed in a single SQL statement so they come from one
snapshot, and are cached in Redis when a cache is configured.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, Select, func, select
from sqlalchemy.orm import Session

from .. import models, settings
from ..cache import cache_get, cache_incr, cache_set
from ..errors import NotFound
from ..validation import round_average

logger = logging.getLogger(__name__)

# Unscaled so the driver does not round averages before round_average does
_AVERAGE = Numeric(asdecimal=True)


@dataclass
class UserAnalytics:
    """Aggregated statistics for one user's posts."""

    user_id: int
    username: str
    total_posts: int
    avg_engagement: Decimal | None
    avg_sentiment: Decimal | None
    last_post_date: datetime | None
    unique_tags_used: int

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary for caching."""
        data = asdict(self)
        for key in ("avg_engagement", "avg_sentiment"):
            if data[key] is not None:
                data[key] = str(data[key])
        if data["last_post_date"] is not None:
            data["last_post_date"] = data["last_post_date"].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "UserAnalytics":
        return cls(
            user_id=data["user_id"],
            username=data["username"],
            total_posts=data["total_posts"],
            avg_engagement=Decimal(data["avg_engagement"]) if data["avg_engagement"] is not None else None,
            avg_sentiment=Decimal(data["avg_sentiment"]) if data["avg_sentiment"] is not None else None,
            last_post_date=datetime.fromisoformat(data["last_post_date"]) if data["last_post_date"] else None,
            unique_tags_used=data["unique_tags_used"],
        )


@dataclass
class PostPerformance:
    """A post's content, its scores (None without analysis) and its tag names."""

    post_id: int
    user_id: int
    username: str
    content: str | None
    sentiment_score: Decimal | None
    engagement_score: Decimal | None
    readability_score: Decimal | None
    tags: list[str]


def _user_analytics_select() -> Select:
    """
    Build the user_analytics view as correlated subqueries on users.

    Posts without analysis count toward total_posts but add no score samples.
    """
    user_posts = models.Post.user_id == models.User.id
    return select(
        models.User.id,
        models.User.username,
        select(func.count(models.Post.id)).where(user_posts).scalar_subquery().label("total_posts"),
        select(func.avg(models.Analysis.engagement_score, type_=_AVERAGE))
        .join(models.Post, models.Post.id == models.Analysis.post_id)
        .where(user_posts)
        .scalar_subquery()
        .label("avg_engagement"),
        select(func.avg(models.Analysis.sentiment_score, type_=_AVERAGE))
        .join(models.Post, models.Post.id == models.Analysis.post_id)
        .where(user_posts)
        .scalar_subquery()
        .label("avg_sentiment"),
        select(func.max(models.Post.upload_date)).where(user_posts).scalar_subquery().label("last_post_date"),
        select(func.count(func.distinct(models.PostTag.tag_id)))
        .join(models.Post, models.Post.id == models.PostTag.post_id)
        .where(user_posts)
        .scalar_subquery()
        .label("unique_tags_used"),
    )


def _row_to_user_analytics(row) -> UserAnalytics:
    return UserAnalytics(
        user_id=row.id,
        username=row.username,
        total_posts=row.total_posts or 0,
        avg_engagement=round_average(row.avg_engagement),
        avg_sentiment=round_average(row.avg_sentiment),
        last_post_date=row.last_post_date,
        unique_tags_used=row.unique_tags_used or 0,
    )


def _version_key(user_id: int) -> str:
    return f"user_analytics_version:{user_id}"


def _cache_key(user_id: int, version: int) -> str:
    return f"user_analytics:{user_id}:v{version}"


def user_analytics(db: Session, user_id: int, refresh: bool = False) -> UserAnalytics:
    """
    Get aggregated statistics for a user.

    Checks the cache first unless refresh is set. Cached entries are keyed by
    the user's data version as read before the query, so a result computed
    while a write commits is stored under a version that is already stale
    and never served.

    Raises:
        NotFound: if the user does not exist
    """
    version = cache_get(_version_key(user_id)) or 0
    cache_key = _cache_key(user_id, version)
    if not refresh:
        cached = cache_get(cache_key)
        if cached:
            logger.debug(f"User analytics cache hit for user {user_id}")
            return UserAnalytics.from_dict(cached)

    row = db.execute(_user_analytics_select().where(models.User.id == user_id)).one_or_none()
    if row is None:
        raise NotFound("user", user_id)

    stats = _row_to_user_analytics(row)
    cache_set(cache_key, stats.to_dict(), ttl=settings.USER_ANALYTICS_CACHE_TTL)
    return stats


def invalidate_user_analytics(user_id: int) -> None:
    """Retire the cached analytics for a user. Called after commits touching their data."""
    cache_incr(_version_key(user_id))


def list_user_analytics(db: Session) -> list[UserAnalytics]:
    """The user_analytics view for every user, ordered by user id."""
    rows = db.execute(_user_analytics_select().order_by(models.User.id)).all()
    return [_row_to_user_analytics(row) for row in rows]


def _tag_names_by_post(db: Session, post_ids: list[int]) -> dict[int, list[str]]:
    if not post_ids:
        return {}
    rows = (
        db.query(models.PostTag.post_id, models.Tag.name)
        .join(models.Tag, models.Tag.id == models.PostTag.tag_id)
        .filter(models.PostTag.post_id.in_(post_ids))
        .order_by(models.Tag.name)
        .all()
    )
    names: dict[int, list[str]] = defaultdict(list)
    for post_id, name in rows:
        names[post_id].append(name)
    return names


def _performance_query(db: Session):
    return (
        db.query(
            models.Post.id,
            models.Post.user_id,
            models.User.username,
            models.Post.content,
            models.Analysis.sentiment_score,
            models.Analysis.engagement_score,
            models.Analysis.readability_score,
        )
        .join(models.User, models.User.id == models.Post.user_id)
        .outerjoin(models.Analysis, models.Analysis.post_id == models.Post.id)
    )


def _row_to_performance(row, tags: list[str]) -> PostPerformance:
    return PostPerformance(
        post_id=row.id,
        user_id=row.user_id,
        username=row.username,
        content=row.content,
        sentiment_score=row.sentiment_score,
        engagement_score=row.engagement_score,
        readability_score=row.readability_score,
        tags=tags,
    )


def post_performance(db: Session, post_id: int) -> PostPerformance:
    """
    Get a post's content, analysis scores and tag names.

    The analysis columns come from one row read, so a concurrent upsert is
    seen either entirely or not at all.

    Raises:
        NotFound: if the post does not exist
    """
    row = _performance_query(db).filter(models.Post.id == post_id).one_or_none()
    if row is None:
        raise NotFound("post", post_id)
    tags = _tag_names_by_post(db, [post_id]).get(post_id, [])
    return _row_to_performance(row, tags)


def list_post_performance(db: Session, user_id: int | None = None) -> list[PostPerformance]:
    """The post_performance view, optionally restricted to one user's posts."""
    query = _performance_query(db)
    if user_id is not None:
        query = query.filter(models.Post.user_id == user_id)
    rows = query.order_by(models.Post.id).all()
    tags = _tag_names_by_post(db, [row.id for row in rows])
    return [_row_to_performance(row, tags.get(row.id, [])) for row in rows]
