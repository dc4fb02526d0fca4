"""
Contract with the external scoring function.

The scorer receives a post's content and file metadata and returns the
score tuple that is then stored through the upsert engine. How scores are
computed is up to the scorer.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Callable

from . import models, settings
from .errors import ScorerUnavailable
from .validation import Number


@dataclass(frozen=True)
class PostContent:
    """What a scorer gets to look at."""

    post_id: int
    content: str | None
    file_path: str | None
    file_type: str | None
    file_size: int | None

    @classmethod
    def from_post(cls, post: models.Post) -> "PostContent":
        return cls(
            post_id=post.id,
            content=post.content,
            file_path=post.file_path,
            file_type=post.file_type,
            file_size=post.file_size,
        )


@dataclass(frozen=True)
class ScoreResult:
    """What a scorer must return. Bounds are checked when the result is stored."""

    sentiment: Number
    engagement: Number
    suggestions: str | None = None
    readability: Number | None = None
    keywords: str | None = None


Scorer = Callable[[PostContent], ScoreResult]


def load_scorer(path: str | None = None) -> Scorer:
    """
    Resolve a scorer from a "package.module:callable" path (ANALYZER_SCORER by default).

    Raises:
        ScorerUnavailable: if no path is configured or it does not resolve to a callable
    """
    path = path or settings.ANALYZER_SCORER
    if not path:
        raise ScorerUnavailable("No scoring function configured (set ANALYZER_SCORER)")

    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ScorerUnavailable(f"Invalid scorer path {path!r}, expected 'module:callable'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ScorerUnavailable(f"Cannot import scorer module {module_name!r}: {exc}") from exc

    scorer = getattr(module, attr, None)
    if not callable(scorer):
        raise ScorerUnavailable(f"{path!r} is not a callable")
    return scorer
