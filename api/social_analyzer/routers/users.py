"""User registration, deletion and analytics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..deps import get_db
from ..services import aggregates, entities

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(payload: schemas.UserCreate, db: Session = Depends(get_db)) -> schemas.User:
    user = entities.create_user(
        db,
        username=payload.username,
        email=payload.email,
        password_hash=payload.password_hash,
        profile_image=payload.profile_image,
        status=payload.status,
    )
    return schemas.User.model_validate(user)


@router.get("/{id}", response_model=schemas.User)
def get_user(id: int, db: Session = Depends(get_db)) -> schemas.User:
    return schemas.User.model_validate(entities.get_user(db, id))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(id: int, db: Session = Depends(get_db)) -> None:
    """Delete a user together with all of their posts, analyses and tag links."""
    entities.delete_user(db, id)


@router.get("/{id}/analytics", response_model=schemas.UserAnalytics)
def get_user_analytics(
    id: int,
    refresh: bool = Query(False, description="Bypass the analytics cache"),
    db: Session = Depends(get_db),
) -> schemas.UserAnalytics:
    return schemas.UserAnalytics.model_validate(
        aggregates.user_analytics(db, id, refresh=refresh)
    )


@router.get("/{id}/posts", response_model=list[schemas.PostPerformance])
def list_user_posts(id: int, db: Session = Depends(get_db)) -> list[schemas.PostPerformance]:
    entities.get_user(db, id)
    return [
        schemas.PostPerformance.model_validate(row)
        for row in aggregates.list_post_performance(db, user_id=id)
    ]
