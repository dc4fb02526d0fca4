"""Test the background analysis task and the scorer contract."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from social_analyzer import models, tasks
from social_analyzer.errors import OutOfRange, ScorerUnavailable
from social_analyzer.scoring import PostContent, ScoreResult, load_scorer
from social_analyzer.services import entities
from social_analyzer.services.analysis import get_analysis
from social_analyzer.tasks import analyze_post, run_post_analysis
from social_analyzer.utils.audit import list_audit_entries


def fixed_scorer(content: PostContent) -> ScoreResult:
    return ScoreResult(
        sentiment=0.42,
        engagement=len(content.content or ""),
        suggestions="post in the morning",
        readability=71.5,
        keywords="spring, campaign",
    )


def failing_scorer(content: PostContent) -> ScoreResult:
    raise RuntimeError("model server unreachable")


def test_run_post_analysis_stores_scores(db: Session, test_post: models.Post):
    run_post_analysis(db, test_post.id, fixed_scorer)

    row = get_analysis(db, test_post.id)
    assert row.sentiment_score == Decimal("0.42")
    assert row.engagement_score == Decimal(len(test_post.content))
    assert row.keywords == "spring, campaign"
    assert entities.get_post(db, test_post.id).processing_status == "completed"


def test_scorer_failure_marks_post_failed(db: Session, test_post: models.Post):
    with pytest.raises(RuntimeError):
        run_post_analysis(db, test_post.id, failing_scorer)

    assert entities.get_post(db, test_post.id).processing_status == "failed"
    assert get_analysis(db, test_post.id) is None

    [entry] = list_audit_entries(db, entity_type="post", entity_id=test_post.id)
    assert entry.message == "Analysis failed: model server unreachable"
    assert "RuntimeError" in entry.stack_trace


def test_out_of_range_result_stores_nothing(db: Session, test_post: models.Post):
    def overly_positive(content: PostContent) -> ScoreResult:
        return ScoreResult(sentiment=1.5, engagement=10)

    with pytest.raises(OutOfRange):
        run_post_analysis(db, test_post.id, overly_positive)

    assert get_analysis(db, test_post.id) is None
    assert entities.get_post(db, test_post.id).processing_status == "failed"


def test_failed_post_can_be_analyzed_again(db: Session, test_post: models.Post):
    with pytest.raises(RuntimeError):
        run_post_analysis(db, test_post.id, failing_scorer)

    run_post_analysis(db, test_post.id, fixed_scorer)

    assert entities.get_post(db, test_post.id).processing_status == "completed"


def test_analyze_post_task(db: Session, test_post: models.Post, monkeypatch):
    monkeypatch.setattr(tasks, "load_scorer", lambda: fixed_scorer)

    result = analyze_post(test_post.id)

    assert result == {"status": "completed", "post_id": test_post.id}
    db.expire_all()
    assert get_analysis(db, test_post.id) is not None


def test_analyze_post_task_skips_busy_or_missing_posts(db: Session, test_post: models.Post, monkeypatch):
    monkeypatch.setattr(tasks, "load_scorer", lambda: fixed_scorer)
    entities.set_processing_status(db, test_post.id, "processing")

    assert analyze_post(test_post.id)["status"] == "skipped"
    assert analyze_post(test_post.id + 1000)["status"] == "skipped"


def test_analyze_post_task_reports_errors(test_post: models.Post, monkeypatch):
    monkeypatch.setattr(tasks, "load_scorer", lambda: failing_scorer)

    result = analyze_post(test_post.id)

    assert result["status"] == "error"
    assert result["message"] == "model server unreachable"


def test_load_scorer():
    assert load_scorer("json:dumps") is json.dumps


@pytest.mark.parametrize(
    "path",
    [None, "json", "no_such_module_for_scoring:score", "json:no_such_function", "json:decoder"],
)
def test_load_scorer_errors(path):
    with pytest.raises(ScorerUnavailable):
        load_scorer(path)
