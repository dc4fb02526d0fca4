"""Post, analysis and tag-association endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..deps import get_db
from ..errors import NotFound
from ..services import aggregates, analysis, entities, tags

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post("", response_model=schemas.Post, status_code=status.HTTP_201_CREATED)
def create_post(payload: schemas.PostCreate, db: Session = Depends(get_db)) -> schemas.Post:
    post = entities.create_post(
        db,
        user_id=payload.user_id,
        content=payload.content,
        file_path=payload.file_path,
        file_type=payload.file_type,
        file_size=payload.file_size,
    )
    return schemas.Post.model_validate(post)


@router.get("/{id}", response_model=schemas.Post)
def get_post(id: int, db: Session = Depends(get_db)) -> schemas.Post:
    return schemas.Post.model_validate(entities.get_post(db, id))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(id: int, db: Session = Depends(get_db)) -> None:
    """Delete a post with its analysis and tag links. Writes a "Post deleted" audit entry."""
    entities.delete_post(db, id)


@router.patch("/{id}/status", response_model=schemas.Post)
def update_processing_status(
    id: int,
    payload: schemas.ProcessingStatusUpdate,
    db: Session = Depends(get_db),
) -> schemas.Post:
    return schemas.Post.model_validate(entities.set_processing_status(db, id, payload.status))


@router.post(
    "/{id}/analyze",
    response_model=schemas.AnalyzeResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def queue_analysis(id: int, db: Session = Depends(get_db)) -> schemas.AnalyzeResponse:
    """Queue the post for scoring by the background worker."""
    from ..tasks import analyze_post

    entities.get_post(db, id)
    result = analyze_post.delay(id)
    logger.info("Queued analysis of post %s as task %s", id, result.id)
    return schemas.AnalyzeResponse(post_id=id, task_id=str(result.id))


# ============================================================================
# ANALYSIS
# ============================================================================


@router.get("/{id}/analysis", response_model=schemas.Analysis)
def get_analysis(id: int, db: Session = Depends(get_db)) -> schemas.Analysis:
    entities.get_post(db, id)
    row = analysis.get_analysis(db, id)
    if row is None:
        raise NotFound("analysis for post", id)
    return schemas.Analysis.model_validate(row)


@router.put("/{id}/analysis", response_model=schemas.Analysis)
def upsert_analysis(
    id: int,
    payload: schemas.AnalysisUpsert,
    db: Session = Depends(get_db),
) -> schemas.Analysis:
    """Insert or update the post's analysis (readability/keywords kept when omitted)."""
    row = analysis.upsert_analysis(
        db,
        id,
        sentiment=payload.sentiment,
        engagement=payload.engagement,
        suggestions=payload.suggestions,
        readability=payload.readability,
        keywords=payload.keywords,
    )
    return schemas.Analysis.model_validate(row)


@router.get("/{id}/performance", response_model=schemas.PostPerformance)
def get_post_performance(id: int, db: Session = Depends(get_db)) -> schemas.PostPerformance:
    return schemas.PostPerformance.model_validate(aggregates.post_performance(db, id))


# ============================================================================
# TAGS
# ============================================================================


@router.get("/{id}/tags", response_model=list[schemas.Tag])
def list_post_tags(id: int, db: Session = Depends(get_db)) -> list[schemas.Tag]:
    return [schemas.Tag.model_validate(tag) for tag in tags.list_tags_for_post(db, id)]


@router.put("/{id}/tags/{tag_id}", response_model=list[schemas.Tag])
def attach_tag(id: int, tag_id: int, db: Session = Depends(get_db)) -> list[schemas.Tag]:
    """Attach a tag (idempotent). Returns the post's tags afterwards."""
    tags.attach_tag(db, id, tag_id)
    return [schemas.Tag.model_validate(tag) for tag in tags.list_tags_for_post(db, id)]


@router.delete("/{id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def detach_tag(id: int, tag_id: int, db: Session = Depends(get_db)) -> None:
    tags.detach_tag(db, id, tag_id)
