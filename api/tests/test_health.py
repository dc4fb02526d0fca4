from __future__ import annotations


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["uptime_s"] >= 0


def test_redis_health_without_cache(client):
    response = client.get("/health/redis")
    assert response.status_code == 200
    assert response.json()["message"] == "Cache disabled"
