from __future__ import annotations

import logging
import os
import traceback
from typing import Any

from celery import Celery
from sqlalchemy.orm import Session

from .db import transaction
from .errors import InvalidTransition, NotFound
from .scoring import PostContent, Scorer, load_scorer
from .services.analysis import upsert_analysis
from .services.entities import get_post, set_processing_status
from .utils.audit import record_audit_entry

logger = logging.getLogger(__name__)

DEFAULT_REDIS = "redis://cache:6379/0"

celery_app = Celery(
    "social_analyzer",
    broker=os.getenv("CELERY_BROKER_URL", DEFAULT_REDIS),
    backend=os.getenv("CELERY_RESULT_BACKEND", DEFAULT_REDIS),
)

celery_app.conf.update(
    task_default_queue="default",
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=3600,
    worker_max_tasks_per_child=100,
    task_routes={"social_analyzer.tasks.analyze_post": {"queue": "analysis"}},
    timezone="UTC",
)


def _record_failure(db: Session, post_id: int, exc: BaseException) -> None:
    """Mark the post failed and keep the stack trace in the audit log."""
    with transaction(db):
        post = get_post(db, post_id)
        if post.processing_status == "processing":
            post.processing_status = "failed"
        record_audit_entry(
            db,
            "post",
            post_id,
            f"Analysis failed: {exc}",
            stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )


def run_post_analysis(db: Session, post_id: int, scorer: Scorer) -> None:
    """
    Score a post and store the result.

    The post moves to "processing", the scorer runs, the scores are upserted
    and the post ends "completed". Any failure after the post entered
    "processing" leaves it "failed" with an audit entry carrying the trace,
    and is re-raised.

    Raises:
        NotFound: if the post does not exist
        InvalidTransition: if the post is already being processed
    """
    post = set_processing_status(db, post_id, "processing")
    try:
        result = scorer(PostContent.from_post(post))
        upsert_analysis(
            db,
            post_id,
            sentiment=result.sentiment,
            engagement=result.engagement,
            suggestions=result.suggestions,
            readability=result.readability,
            keywords=result.keywords,
        )
        set_processing_status(db, post_id, "completed")
    except Exception as exc:
        db.rollback()
        logger.error("Analysis of post %s failed: %s", post_id, exc, exc_info=True)
        try:
            _record_failure(db, post_id, exc)
        except NotFound:
            logger.info("Post %s was deleted during analysis", post_id)
        raise

    logger.info("Analysis of post %s completed", post_id)


@celery_app.task(name="social_analyzer.tasks.analyze_post", bind=True)
def analyze_post(self, post_id: int) -> dict[str, Any]:
    """Celery task wrapper for run_post_analysis with its own session."""
    from .db import SessionLocal

    db = SessionLocal()
    try:
        run_post_analysis(db, post_id, load_scorer())
        return {"status": "completed", "post_id": post_id}
    except (NotFound, InvalidTransition) as e:
        logger.warning("Skipping analysis of post %s: %s", post_id, e)
        return {"status": "skipped", "post_id": post_id, "message": str(e)}
    except Exception as e:
        logger.error("Error analyzing post %s: %s", post_id, str(e))
        return {"status": "error", "post_id": post_id, "message": str(e)}
    finally:
        db.close()
