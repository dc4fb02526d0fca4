"""
Analysis upsert engine.

Keeps at most one analysis row per post. Each upsert locks the owning post
row for the length of its transaction, so upserts for the same post run one
after another and the last one wins as a whole. A lost race (unique index hit,
serialization failure, deadlock) surfaces as Conflict and is retried a
bounded number of times before reaching the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from .. import hooks, models, settings
from ..db import is_retryable_failure, transaction
from ..errors import Conflict, NotFound
from ..validation import (
    Number,
    validate_engagement,
    validate_readability,
    validate_sentiment,
)
from .aggregates import invalidate_user_analytics

logger = logging.getLogger(__name__)


def get_analysis(db: Session, post_id: int) -> models.Analysis | None:
    """Return the analysis for a post, or None if it has not been analyzed yet."""
    return db.query(models.Analysis).filter(models.Analysis.post_id == post_id).first()


def _write_analysis(
    db: Session,
    post_id: int,
    sentiment: Decimal,
    engagement: Decimal,
    suggestions: str | None,
    readability: Decimal | None,
    keywords: str | None,
) -> tuple[models.Analysis, int]:
    """One upsert attempt as a single transaction. Returns the row and the post owner id."""
    try:
        with transaction(db):
            post = (
                db.query(models.Post)
                .filter(models.Post.id == post_id)
                .with_for_update()
                .first()
            )
            if not post:
                raise NotFound("post", post_id)

            analysis = get_analysis(db, post_id)
            created = analysis is None
            if created:
                analysis = models.Analysis(
                    post_id=post_id,
                    readability_score=readability,
                    keywords=keywords,
                )
                db.add(analysis)
            else:
                analysis.last_updated = func.now()
                # Partial upsert: optional fields only change when supplied
                if readability is not None:
                    analysis.readability_score = readability
                if keywords is not None:
                    analysis.keywords = keywords

            analysis.sentiment_score = sentiment
            analysis.engagement_score = engagement
            analysis.suggestions = suggestions
            db.flush()

            hooks.dispatch(db, hooks.AnalysisWritten(analysis=analysis, created=created))
            owner_id = post.user_id
    except IntegrityError as exc:
        raise Conflict(f"Concurrent analysis write for post {post_id}") from exc
    except DBAPIError as exc:
        # Serialization failures and deadlocks; SQLite reports lock timeouts here too
        if is_retryable_failure(exc):
            raise Conflict(f"Concurrent analysis write for post {post_id}") from exc
        raise

    logger.info(
        "%s analysis %s for post %s",
        "Created" if created else "Updated",
        analysis.id,
        post_id,
    )
    return analysis, owner_id


def upsert_analysis(
    db: Session,
    post_id: int,
    sentiment: Number,
    engagement: Number,
    suggestions: str | None,
    readability: Number | None = None,
    keywords: str | None = None,
) -> models.Analysis:
    """
    Insert or update the analysis for a post.

    On update, sentiment, engagement and suggestions are overwritten and
    last_updated is stamped; readability and keywords keep their stored
    values unless passed.

    Args:
        db: Database session
        post_id: Post being analyzed
        sentiment: Score in [-1.00, 1.00]
        engagement: Score in [0.00, 100.00]
        suggestions: Free-text suggestions (overwritten on every call)
        readability: Optional score within the configured readability bounds
        keywords: Optional keyword extraction output

    Returns:
        The stored Analysis

    Raises:
        OutOfRange: if any score is outside its bounds (nothing is written)
        NotFound: if the post does not exist
        Conflict: if the write kept losing races after the configured attempts
    """
    sentiment_score = validate_sentiment(sentiment)
    engagement_score = validate_engagement(engagement)
    readability_score = validate_readability(readability) if readability is not None else None

    attempt = 1
    while True:
        try:
            analysis, owner_id = _write_analysis(
                db,
                post_id,
                sentiment_score,
                engagement_score,
                suggestions,
                readability_score,
                keywords,
            )
            break
        except Conflict:
            if attempt >= settings.ANALYSIS_UPSERT_MAX_ATTEMPTS:
                logger.error(
                    "Analysis upsert for post %s still conflicting after %s attempts",
                    post_id,
                    attempt,
                )
                raise
            logger.warning(
                "Analysis upsert for post %s conflicted (attempt %s), retrying",
                post_id,
                attempt,
            )
            attempt += 1

    db.refresh(analysis)
    invalidate_user_analytics(owner_id)
    return analysis
