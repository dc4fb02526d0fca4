"""Aggregate views across all users and posts."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..deps import get_db
from ..services.aggregates import list_post_performance, list_user_analytics

router = APIRouter(prefix="/stats", tags=["Statistics"])


@router.get("/users", response_model=list[schemas.UserAnalytics])
def get_user_analytics_view(db: Session = Depends(get_db)) -> list[schemas.UserAnalytics]:
    return [schemas.UserAnalytics.model_validate(row) for row in list_user_analytics(db)]


@router.get("/posts", response_model=list[schemas.PostPerformance])
def get_post_performance_view(db: Session = Depends(get_db)) -> list[schemas.PostPerformance]:
    return [schemas.PostPerformance.model_validate(row) for row in list_post_performance(db)]
