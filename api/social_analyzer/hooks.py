"""
Post-mutation hooks.

Mutations dispatch events to the handlers registered here, synchronously and
on the same session, before their transaction commits. A handler that raises
aborts the mutation together with everything the other handlers wrote.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from . import models, settings
from .utils.audit import (
    NEGATIVE_SENTIMENT_MESSAGE,
    POST_DELETED_MESSAGE,
    record_audit_entry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostDeleted:
    """A post row (and its dependents) is being removed."""

    post_id: int
    user_id: int
    cascaded: bool = False  # True when removed as part of a user deletion


@dataclass(frozen=True)
class AnalysisWritten:
    """An analysis row was inserted (created=True) or updated in place."""

    analysis: models.Analysis
    created: bool


Handler = Callable[[Session, Any], None]

_handlers: dict[type, list[Handler]] = {}


def register(event_type: type) -> Callable[[Handler], Handler]:
    """Decorator registering a handler for an event type."""

    def decorator(handler: Handler) -> Handler:
        _handlers.setdefault(event_type, []).append(handler)
        return handler

    return decorator


def unregister(event_type: type, handler: Handler) -> None:
    handlers = _handlers.get(event_type, [])
    if handler in handlers:
        handlers.remove(handler)


def dispatch(db: Session, event: PostDeleted | AnalysisWritten) -> None:
    """Run every handler registered for the event's type, in registration order."""
    for handler in list(_handlers.get(type(event), [])):
        handler(db, event)


# ============================================================================
# DEFAULT REACTIONS
# ============================================================================


@register(PostDeleted)
def audit_post_deletion(db: Session, event: PostDeleted) -> None:
    if event.cascaded and not settings.AUDIT_CASCADED_POST_DELETIONS:
        return
    record_audit_entry(db, "post", event.post_id, POST_DELETED_MESSAGE)


@register(AnalysisWritten)
def audit_negative_sentiment(db: Session, event: AnalysisWritten) -> None:
    if event.created and not settings.AUDIT_NEGATIVE_SENTIMENT_ON_INSERT:
        return
    analysis = event.analysis
    if analysis.sentiment_score < settings.NEGATIVE_SENTIMENT_THRESHOLD:
        logger.warning(
            "Very negative sentiment %s on analysis %s (post %s)",
            analysis.sentiment_score,
            analysis.id,
            analysis.post_id,
        )
        record_audit_entry(db, "analysis", analysis.id, NEGATIVE_SENTIMENT_MESSAGE)
