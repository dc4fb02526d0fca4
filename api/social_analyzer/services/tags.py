"""Tag association manager: the post <-> tag many-to-many mapping."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..db import transaction
from ..errors import NotFound
from .aggregates import invalidate_user_analytics
from .entities import get_post, get_tag

logger = logging.getLogger(__name__)


def _association(db: Session, post_id: int, tag_id: int) -> models.PostTag | None:
    return (
        db.query(models.PostTag)
        .filter(models.PostTag.post_id == post_id, models.PostTag.tag_id == tag_id)
        .first()
    )


def attach_tag(db: Session, post_id: int, tag_id: int) -> bool:
    """
    Attach a tag to a post. Attaching an already attached tag is a no-op.

    Returns:
        True if a new association was created, False if it already existed

    Raises:
        NotFound: if the post or the tag does not exist
    """
    try:
        with transaction(db):
            post = get_post(db, post_id)
            get_tag(db, tag_id)
            owner_id = post.user_id
            if _association(db, post_id, tag_id):
                return False
            db.add(models.PostTag(post_id=post_id, tag_id=tag_id))
            db.flush()
    except IntegrityError:
        # A concurrent attach inserted the same pair first; a missing parent shows up as NotFound
        get_post(db, post_id)
        get_tag(db, tag_id)
        return False

    invalidate_user_analytics(owner_id)
    logger.info("Attached tag %s to post %s", tag_id, post_id)
    return True


def detach_tag(db: Session, post_id: int, tag_id: int) -> bool:
    """
    Detach a tag from a post. Detaching a tag that is not attached is a no-op.

    Returns:
        True if an association was removed

    Raises:
        NotFound: if the post or the tag does not exist
    """
    with transaction(db):
        post = get_post(db, post_id)
        get_tag(db, tag_id)
        owner_id = post.user_id
        removed = (
            db.query(models.PostTag)
            .filter(models.PostTag.post_id == post_id, models.PostTag.tag_id == tag_id)
            .delete(synchronize_session="fetch")
        )

    if removed:
        invalidate_user_analytics(owner_id)
        logger.info("Detached tag %s from post %s", tag_id, post_id)
    return bool(removed)


def list_tags_for_post(db: Session, post_id: int) -> list[models.Tag]:
    """
    List the tags attached to a post, ordered by name.

    Raises:
        NotFound: if the post does not exist
    """
    get_post(db, post_id)
    return (
        db.query(models.Tag)
        .join(models.PostTag, models.PostTag.tag_id == models.Tag.id)
        .filter(models.PostTag.post_id == post_id)
        .order_by(models.Tag.name)
        .all()
    )


def list_posts_for_tag(db: Session, tag_id: int) -> list[int]:
    """
    List the ids of posts carrying a tag.

    Raises:
        NotFound: if the tag does not exist
    """
    get_tag(db, tag_id)
    rows = (
        db.query(models.PostTag.post_id)
        .filter(models.PostTag.tag_id == tag_id)
        .order_by(models.PostTag.post_id)
        .all()
    )
    return [row[0] for row in rows]
