"""Audit log writer and reader."""

from __future__ import annotations

from sqlalchemy.orm import Session

from .. import models

POST_DELETED_MESSAGE = "Post deleted"
NEGATIVE_SENTIMENT_MESSAGE = "Very negative sentiment detected"


def record_audit_entry(
    db: Session,
    entity_type: str,
    entity_id: int | None,
    message: str,
    stack_trace: str | None = None,
) -> models.AuditEntry:
    """
    Append an entry to the audit log.

    The entry is only flushed, never committed: it becomes visible together
    with the mutation that produced it, or not at all.

    Args:
        db: Database session (inside the caller's transaction)
        entity_type: Kind of entity the entry is about (e.g., "post", "analysis")
        entity_id: Identifier of that entity
        message: Human-readable description
        stack_trace: Optional trace or extra context

    Returns:
        The pending AuditEntry
    """
    entry = models.AuditEntry(
        entity_type=entity_type,
        entity_id=entity_id,
        message=message,
        stack_trace=stack_trace,
    )
    db.add(entry)
    db.flush()
    return entry


def list_audit_entries(
    db: Session,
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int | None = None,
) -> list[models.AuditEntry]:
    """List audit entries, newest first, optionally filtered by entity."""
    query = db.query(models.AuditEntry)
    if entity_type is not None:
        query = query.filter(models.AuditEntry.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(models.AuditEntry.entity_id == entity_id)
    query = query.order_by(models.AuditEntry.created_at.desc(), models.AuditEntry.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()
