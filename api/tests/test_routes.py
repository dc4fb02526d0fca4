"""Test the HTTP surface: payloads, status codes and problem responses."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from social_analyzer import models, tasks


def _create_user(client: TestClient, username: str = "ana", email: str = "ana@example.com") -> dict:
    response = client.post(
        "/users",
        json={"username": username, "email": email, "password_hash": "hashed_password"},
    )
    assert response.status_code == 201
    return response.json()


def _create_post(client: TestClient, user_id: int, content: str = "hello world") -> dict:
    response = client.post("/posts", json={"user_id": user_id, "content": content})
    assert response.status_code == 201
    return response.json()


def test_create_and_get_user(client: TestClient):
    user = _create_user(client)

    assert user["status"] == "active"
    assert "password_hash" not in user

    response = client.get(f"/users/{user['id']}")
    assert response.status_code == 200
    assert response.json()["username"] == "ana"


def test_duplicate_user_is_conflict(client: TestClient):
    _create_user(client)

    response = client.post(
        "/users",
        json={"username": "ANA", "email": "other@example.com", "password_hash": "x"},
    )

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    body = response.json()
    assert body["title"] == "DuplicateKey"
    assert body["status"] == 409


def test_unknown_entities_are_not_found(client: TestClient):
    for path in ("/users/999", "/posts/999", "/posts/999/analysis", "/posts/999/performance"):
        response = client.get(path)
        assert response.status_code == 404, path

    assert client.delete("/posts/999").status_code == 404
    assert client.delete("/tags/999").status_code == 404


def test_post_for_unknown_user(client: TestClient):
    response = client.post("/posts", json={"user_id": 12345, "content": "orphan"})
    assert response.status_code == 404


def test_analysis_lifecycle(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])

    assert client.get(f"/posts/{post['id']}/analysis").status_code == 404

    response = client.put(
        f"/posts/{post['id']}/analysis",
        json={"sentiment": "0.25", "engagement": 61.5, "suggestions": "add an image"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["sentiment_score"] == "0.25"
    assert body["engagement_score"] == "61.50"

    response = client.put(
        f"/posts/{post['id']}/analysis",
        json={"sentiment": -0.95, "engagement": 10},
    )
    assert response.status_code == 200
    assert response.json()["id"] == body["id"]

    entries = client.get("/audit", params={"entity_type": "analysis"}).json()
    assert [entry["message"] for entry in entries] == ["Very negative sentiment detected"]


def test_out_of_range_scores(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])

    response = client.put(
        f"/posts/{post['id']}/analysis",
        json={"sentiment": 1.2, "engagement": 10},
    )

    assert response.status_code == 422
    assert response.json()["title"] == "OutOfRange"
    assert client.get(f"/posts/{post['id']}/analysis").status_code == 404


def test_processing_status_transitions(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])

    response = client.patch(f"/posts/{post['id']}/status", json={"status": "completed"})
    assert response.status_code == 409
    assert response.json()["title"] == "InvalidTransition"

    response = client.patch(f"/posts/{post['id']}/status", json={"status": "processing"})
    assert response.status_code == 200
    assert response.json()["processing_status"] == "processing"


def test_tags_and_performance(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"], content="tagged")
    tag = client.post("/tags", json={"name": "Launch"}).json()

    assert client.post("/tags", json={"name": "launch"}).status_code == 409

    for _ in range(2):
        response = client.put(f"/posts/{post['id']}/tags/{tag['id']}")
        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["Launch"]

    assert client.get(f"/tags/{tag['id']}/posts").json() == [post["id"]]

    performance = client.get(f"/posts/{post['id']}/performance").json()
    assert performance["tags"] == ["Launch"]
    assert performance["sentiment_score"] is None

    assert client.delete(f"/posts/{post['id']}/tags/{tag['id']}").status_code == 204
    assert client.delete(f"/posts/{post['id']}/tags/{tag['id']}").status_code == 204
    assert client.get(f"/posts/{post['id']}/tags").json() == []


def test_delete_post_writes_audit_entry(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])

    assert client.delete(f"/posts/{post['id']}").status_code == 204
    assert client.get(f"/posts/{post['id']}").status_code == 404

    entries = client.get(
        "/audit", params={"entity_type": "post", "entity_id": post["id"]}
    ).json()
    assert len(entries) == 1
    assert entries[0]["message"] == "Post deleted"


def test_user_analytics_and_stats(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])
    _create_post(client, user["id"], content="second")
    client.put(f"/posts/{post['id']}/analysis", json={"sentiment": 0.5, "engagement": 20})

    analytics = client.get(f"/users/{user['id']}/analytics", params={"refresh": True}).json()
    assert analytics["total_posts"] == 2
    assert analytics["avg_engagement"] == "20.00"
    assert analytics["avg_sentiment"] == "0.50"

    assert len(client.get(f"/users/{user['id']}/posts").json()) == 2
    assert [row["username"] for row in client.get("/stats/users").json()] == ["ana"]
    assert len(client.get("/stats/posts").json()) == 2


def test_delete_user_cascades(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])

    assert client.delete(f"/users/{user['id']}").status_code == 204
    assert client.get(f"/posts/{post['id']}").status_code == 404
    assert client.get(f"/users/{user['id']}/analytics").status_code == 404


def test_queue_analysis(client: TestClient, test_post: models.Post, monkeypatch):
    queued = []

    def fake_delay(post_id):
        queued.append(post_id)
        return SimpleNamespace(id="task-1")

    monkeypatch.setattr(tasks.analyze_post, "delay", fake_delay)

    response = client.post(f"/posts/{test_post.id}/analyze")

    assert response.status_code == 202
    assert response.json() == {"post_id": test_post.id, "task_id": "task-1", "status": "queued"}
    assert queued == [test_post.id]


@pytest.mark.parametrize("limit", [0, 1001])
def test_audit_limit_is_bounded(client: TestClient, limit: int):
    assert client.get("/audit", params={"limit": limit}).status_code == 422


def test_missing_analysis_is_a_problem_response(client: TestClient):
    user = _create_user(client)
    post = _create_post(client, user["id"])

    response = client.get(f"/posts/{post['id']}/analysis")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["title"] == "NotFound"


def test_oversized_file_is_rejected(client: TestClient):
    user = _create_user(client)

    response = client.post(
        "/posts", json={"user_id": user["id"], "content": "video", "file_size": 2**31}
    )

    assert response.status_code == 422
    assert response.json()["title"] == "OutOfRange"
