"""Tag endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..deps import get_db
from ..services import entities, tags

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=list[schemas.Tag])
def list_tags(db: Session = Depends(get_db)) -> list[schemas.Tag]:
    return [schemas.Tag.model_validate(tag) for tag in entities.list_tags(db)]


@router.post("", response_model=schemas.Tag, status_code=status.HTTP_201_CREATED)
def create_tag(payload: schemas.TagCreate, db: Session = Depends(get_db)) -> schemas.Tag:
    return schemas.Tag.model_validate(entities.create_tag(db, payload.name))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(id: int, db: Session = Depends(get_db)) -> None:
    entities.delete_tag(db, id)


@router.get("/{id}/posts", response_model=list[int])
def list_tagged_posts(id: int, db: Session = Depends(get_db)) -> list[int]:
    return tags.list_posts_for_tag(db, id)
