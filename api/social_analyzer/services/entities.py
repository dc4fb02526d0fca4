"""
Entity store: users, posts and tags.

Creation enforces uniqueness and foreign keys up front; deletions cascade
to analyses and tag associations inside one transaction and fire the
PostDeleted hook for every post removed.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import hooks, models
from ..db import transaction
from ..errors import DuplicateKey, InvalidField, InvalidTransition, NotFound
from ..validation import (
    MAX_EMAIL_LENGTH,
    MAX_TAG_NAME_LENGTH,
    MAX_USERNAME_LENGTH,
    validate_file_size,
)
from .aggregates import invalidate_user_analytics

logger = logging.getLogger(__name__)

# Allowed processing_status moves. Finished posts may be re-analyzed.
PROCESSING_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"processing"}),
    "processing": frozenset({"completed", "failed"}),
    "completed": frozenset({"processing"}),
    "failed": frozenset({"processing"}),
}


def _required_text(field: str, value: str | None, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidField(field, "must not be empty")
    if len(value) > max_length:
        raise InvalidField(field, f"must be at most {max_length} characters")
    return value


# ============================================================================
# LOOKUPS
# ============================================================================


def get_user(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFound("user", user_id)
    return user


def get_post(db: Session, post_id: int) -> models.Post:
    post = db.query(models.Post).filter(models.Post.id == post_id).first()
    if not post:
        raise NotFound("post", post_id)
    return post


def get_tag(db: Session, tag_id: int) -> models.Tag:
    tag = db.query(models.Tag).filter(models.Tag.id == tag_id).first()
    if not tag:
        raise NotFound("tag", tag_id)
    return tag


def get_tag_by_name(db: Session, name: str) -> models.Tag:
    tag = (
        db.query(models.Tag)
        .filter(func.lower(models.Tag.name) == name.strip().lower())
        .first()
    )
    if not tag:
        raise NotFound("tag", name)
    return tag


def list_tags(db: Session) -> list[models.Tag]:
    return db.query(models.Tag).order_by(models.Tag.name).all()


# ============================================================================
# CREATION
# ============================================================================


def _check_user_unique(db: Session, username: str, email: str) -> None:
    existing = (
        db.query(models.User)
        .filter(
            or_(
                func.lower(models.User.username) == username.lower(),
                func.lower(models.User.email) == email,
            )
        )
        .first()
    )
    if existing is None:
        return
    if existing.username.lower() == username.lower():
        raise DuplicateKey("user", "username", username)
    raise DuplicateKey("user", "email", email)


def create_user(
    db: Session,
    username: str,
    email: str,
    password_hash: str,
    profile_image: str | None = None,
    status: str = "active",
) -> models.User:
    """
    Register a user.

    Usernames and emails are unique case-insensitively.

    Raises:
        DuplicateKey: if the username or email is taken
        InvalidField: on empty/overlong values or an unknown status
    """
    username = _required_text("username", username, MAX_USERNAME_LENGTH)
    email = _required_text("email", email, MAX_EMAIL_LENGTH).lower()
    if not password_hash:
        raise InvalidField("password_hash", "must not be empty")
    if status not in models.USER_STATUSES:
        raise InvalidField("status", f"must be one of {', '.join(models.USER_STATUSES)}")

    try:
        with transaction(db):
            _check_user_unique(db, username, email)

            user = models.User(
                username=username,
                email=email,
                password_hash=password_hash,
                profile_image=profile_image,
                status=status,
            )
            db.add(user)
            db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration; the winner is committed by now
        _check_user_unique(db, username, email)
        raise DuplicateKey("user", "username", username) from exc

    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def create_post(
    db: Session,
    user_id: int,
    content: str | None = None,
    file_path: str | None = None,
    file_type: str | None = None,
    file_size: int | None = None,
) -> models.Post:
    """
    Create a post owned by an existing user. New posts start as "pending".

    Raises:
        NotFound: if the user does not exist
        OutOfRange: if file_size is negative
    """
    file_size = validate_file_size(file_size)

    with transaction(db):
        get_user(db, user_id)
        post = models.Post(
            user_id=user_id,
            content=content,
            file_path=file_path,
            file_type=file_type,
            file_size=file_size,
        )
        db.add(post)
        db.flush()

    db.refresh(post)
    invalidate_user_analytics(user_id)
    logger.info("Created post %s for user %s", post.id, user_id)
    return post


def create_tag(db: Session, name: str) -> models.Tag:
    """
    Create a tag. Names are unique case-insensitively.

    Raises:
        DuplicateKey: if a tag with the same name exists
    """
    name = _required_text("name", name, MAX_TAG_NAME_LENGTH)

    try:
        with transaction(db):
            existing = (
                db.query(models.Tag.id)
                .filter(func.lower(models.Tag.name) == name.lower())
                .first()
            )
            if existing:
                raise DuplicateKey("tag", "name", name)
            tag = models.Tag(name=name)
            db.add(tag)
            db.flush()
    except IntegrityError as exc:
        raise DuplicateKey("tag", "name", name) from exc

    db.refresh(tag)
    logger.info("Created tag %s (%s)", tag.id, tag.name)
    return tag


# ============================================================================
# MUTATION
# ============================================================================


def set_processing_status(db: Session, post_id: int, status: str) -> models.Post:
    """
    Move a post through pending -> processing -> completed | failed.

    Raises:
        NotFound: if the post does not exist
        InvalidField: if status is not a known processing status
        InvalidTransition: if the move is not allowed from the current status
    """
    if status not in models.PROCESSING_STATUSES:
        raise InvalidField(
            "processing_status", f"must be one of {', '.join(models.PROCESSING_STATUSES)}"
        )

    with transaction(db):
        post = (
            db.query(models.Post)
            .filter(models.Post.id == post_id)
            .with_for_update()
            .first()
        )
        if not post:
            raise NotFound("post", post_id)
        current = post.processing_status
        if status not in PROCESSING_TRANSITIONS[current]:
            raise InvalidTransition(current, status)
        post.processing_status = status
        post.last_modified = func.now()

    db.refresh(post)
    logger.info("Post %s processing status %s -> %s", post_id, current, status)
    return post


def record_login(db: Session, user_id: int) -> models.User:
    with transaction(db):
        user = get_user(db, user_id)
        user.last_login = func.now()
    db.refresh(user)
    return user


# ============================================================================
# DELETION
# ============================================================================


def _delete_posts(db: Session, posts: list[models.Post], cascaded: bool) -> None:
    """Remove posts with their analyses and tag associations, then fire the hooks."""
    if not posts:
        return
    post_ids = [post.id for post in posts]
    deleted = [(post.id, post.user_id) for post in posts]

    db.query(models.Analysis).filter(models.Analysis.post_id.in_(post_ids)).delete(
        synchronize_session="fetch"
    )
    db.query(models.PostTag).filter(models.PostTag.post_id.in_(post_ids)).delete(
        synchronize_session="fetch"
    )
    db.query(models.Post).filter(models.Post.id.in_(post_ids)).delete(
        synchronize_session="fetch"
    )

    for post_id, user_id in deleted:
        hooks.dispatch(db, hooks.PostDeleted(post_id=post_id, user_id=user_id, cascaded=cascaded))


def delete_post(db: Session, post_id: int) -> None:
    """
    Delete a post, its analysis and its tag associations.

    A "Post deleted" audit entry is written in the same transaction.

    Raises:
        NotFound: if the post does not exist
    """
    with transaction(db):
        post = (
            db.query(models.Post)
            .filter(models.Post.id == post_id)
            .with_for_update()
            .first()
        )
        if not post:
            raise NotFound("post", post_id)
        user_id = post.user_id
        _delete_posts(db, [post], cascaded=False)

    invalidate_user_analytics(user_id)
    logger.info("Deleted post %s", post_id)


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user and, in the same transaction, all of their posts together
    with those posts' analyses and tag associations.

    Raises:
        NotFound: if the user does not exist
    """
    with transaction(db):
        user = (
            db.query(models.User)
            .filter(models.User.id == user_id)
            .with_for_update()
            .first()
        )
        if not user:
            raise NotFound("user", user_id)
        posts = (
            db.query(models.Post)
            .filter(models.Post.user_id == user_id)
            .order_by(models.Post.id)
            .with_for_update()
            .all()
        )
        _delete_posts(db, posts, cascaded=True)
        db.query(models.User).filter(models.User.id == user_id).delete(
            synchronize_session="fetch"
        )

    invalidate_user_analytics(user_id)
    logger.info("Deleted user %s with %s posts", user_id, len(posts))


def delete_tag(db: Session, tag_id: int) -> None:
    """
    Delete a tag and detach it from every post.

    Raises:
        NotFound: if the tag does not exist
    """
    with transaction(db):
        tag = (
            db.query(models.Tag)
            .filter(models.Tag.id == tag_id)
            .with_for_update()
            .first()
        )
        if not tag:
            raise NotFound("tag", tag_id)
        owner_ids = {
            row[0]
            for row in db.query(models.Post.user_id)
            .join(models.PostTag, models.PostTag.post_id == models.Post.id)
            .filter(models.PostTag.tag_id == tag_id)
            .distinct()
            .all()
        }
        db.query(models.PostTag).filter(models.PostTag.tag_id == tag_id).delete(
            synchronize_session="fetch"
        )
        db.delete(tag)

    for owner_id in owner_ids:
        invalidate_user_analytics(owner_id)
    logger.info("Deleted tag %s", tag_id)
