"""Test the audit log reader and the post-deletion reaction."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from social_analyzer import hooks, models
from social_analyzer.db import transaction
from social_analyzer.services import entities
from social_analyzer.utils.audit import list_audit_entries, record_audit_entry


def test_list_is_newest_first_and_filterable(db: Session):
    with transaction(db):
        record_audit_entry(db, "post", 1, "Post deleted")
        record_audit_entry(db, "analysis", 7, "Very negative sentiment detected")
        record_audit_entry(db, "post", 2, "Post deleted")

    everything = list_audit_entries(db)
    assert [(entry.entity_type, entry.entity_id) for entry in everything] == [
        ("post", 2),
        ("analysis", 7),
        ("post", 1),
    ]

    posts_only = list_audit_entries(db, entity_type="post")
    assert [entry.entity_id for entry in posts_only] == [2, 1]

    one = list_audit_entries(db, entity_type="post", entity_id=1)
    assert len(one) == 1

    assert len(list_audit_entries(db, limit=2)) == 2


def test_record_does_not_commit(db: Session):
    record_audit_entry(db, "post", 3, "Post deleted")
    db.rollback()

    assert list_audit_entries(db) == []


def test_failing_deletion_hook_keeps_post(db: Session, test_post: models.Post):
    def explode(session, event):
        raise RuntimeError("hook failure")

    hooks.register(hooks.PostDeleted)(explode)
    try:
        with pytest.raises(RuntimeError):
            entities.delete_post(db, test_post.id)
    finally:
        hooks.unregister(hooks.PostDeleted, explode)

    assert entities.get_post(db, test_post.id).id == test_post.id
    assert list_audit_entries(db) == []


def test_exactly_one_entry_per_deleted_post(db: Session, test_user: models.User):
    posts = [entities.create_post(db, test_user.id, content=str(i)) for i in range(3)]
    post_ids = [post.id for post in posts]

    for post_id in post_ids:
        entities.delete_post(db, post_id)

    entries = list_audit_entries(db, entity_type="post")
    assert sorted(entry.entity_id for entry in entries) == sorted(post_ids)
    assert all(entry.message == "Post deleted" for entry in entries)
