"""Tests for the health check endpoints."""

from unittest.mock import AsyncMock

from src.relying_party.core.storage.session_storage import RedisSessionStorage


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "relying-party"}

    def test_ready_with_memory_store(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["session_store"] == {"status": "healthy", "type": "in-memory"}

    def test_not_ready_when_store_down(self, client_factory, broken_storage):
        client = client_factory(broken_storage)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["session_store"]["status"] == "unhealthy"

    def test_ready_pings_redis(self, client_factory):
        mock_redis = AsyncMock()
        mock_redis.ping.side_effect = ConnectionError("down")
        client = client_factory(RedisSessionStorage(mock_redis))

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["session_store"]["type"] == "redis"
        mock_redis.ping.assert_called_once()
