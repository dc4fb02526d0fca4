"""Audit log endpoint (read-only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..deps import get_db
from ..utils.audit import list_audit_entries

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("", response_model=list[schemas.AuditEntry])
def get_audit_entries(
    entity_type: str | None = Query(None, description="e.g. post, analysis"),
    entity_id: int | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[schemas.AuditEntry]:
    """Newest entries first."""
    entries = list_audit_entries(db, entity_type=entity_type, entity_id=entity_id, limit=limit)
    return [schemas.AuditEntry.model_validate(entry) for entry in entries]
