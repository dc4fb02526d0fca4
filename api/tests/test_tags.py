"""Test the post <-> tag association manager."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from social_analyzer import models
from social_analyzer.errors import NotFound
from social_analyzer.services import entities
from social_analyzer.services.tags import (
    attach_tag,
    detach_tag,
    list_posts_for_tag,
    list_tags_for_post,
)


def test_attach_is_idempotent(db: Session, test_post: models.Post):
    marketing = entities.create_tag(db, "Marketing")

    assert attach_tag(db, test_post.id, marketing.id) is True
    for _ in range(3):
        assert attach_tag(db, test_post.id, marketing.id) is False

    rows = (
        db.query(models.PostTag)
        .filter(models.PostTag.post_id == test_post.id, models.PostTag.tag_id == marketing.id)
        .count()
    )
    assert rows == 1


def test_list_tags_ordered_by_name(db: Session, test_post: models.Post):
    for name in ("Trending", "Business", "Technology"):
        attach_tag(db, test_post.id, entities.create_tag(db, name).id)

    assert [tag.name for tag in list_tags_for_post(db, test_post.id)] == [
        "Business",
        "Technology",
        "Trending",
    ]


def test_detach_missing_association_is_noop(db: Session, test_post: models.Post, test_tag: models.Tag):
    assert detach_tag(db, test_post.id, test_tag.id) is False

    attach_tag(db, test_post.id, test_tag.id)
    assert detach_tag(db, test_post.id, test_tag.id) is True
    assert list_tags_for_post(db, test_post.id) == []


@pytest.mark.parametrize("operation", [attach_tag, detach_tag])
def test_unknown_post_or_tag(db: Session, test_post: models.Post, test_tag: models.Tag, operation):
    with pytest.raises(NotFound) as excinfo:
        operation(db, 987654, test_tag.id)
    assert excinfo.value.entity_type == "post"

    with pytest.raises(NotFound) as excinfo:
        operation(db, test_post.id, 987654)
    assert excinfo.value.entity_type == "tag"

    assert db.query(models.PostTag).count() == 0


def test_list_tags_for_unknown_post(db: Session):
    with pytest.raises(NotFound):
        list_tags_for_post(db, 13579)


def test_list_posts_for_tag(db: Session, test_user: models.User, test_tag: models.Tag):
    first = entities.create_post(db, test_user.id, content="one")
    second = entities.create_post(db, test_user.id, content="two")
    entities.create_post(db, test_user.id, content="untagged")
    attach_tag(db, second.id, test_tag.id)
    attach_tag(db, first.id, test_tag.id)

    assert list_posts_for_tag(db, test_tag.id) == sorted([first.id, second.id])
