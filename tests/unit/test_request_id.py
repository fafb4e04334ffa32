"""Tests for request ID middleware."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from agentchat.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    generate_request_id,
    is_valid_uuid,
)


class TestIsValidUuid:
    """Tests for UUID validation."""

    def test_valid_uuid4(self):
        """Test valid UUID4 is accepted."""
        assert is_valid_uuid("550e8400-e29b-41d4-a716-446655440000")

    def test_valid_uuid_uppercase(self):
        """Test uppercase UUID is accepted."""
        assert is_valid_uuid("550E8400-E29B-41D4-A716-446655440000")

    def test_invalid_uuid_short(self):
        """Test short string is rejected."""
        assert not is_valid_uuid("not-a-uuid")

    def test_invalid_uuid_empty(self):
        """Test empty string is rejected."""
        assert not is_valid_uuid("")

    def test_invalid_uuid_none(self):
        """Test None is rejected."""
        assert not is_valid_uuid(None)  # type: ignore


class TestGenerateRequestId:
    """Tests for request ID generation."""

    def test_generates_valid_uuid(self):
        """Test generated IDs are valid UUIDs."""
        assert is_valid_uuid(generate_request_id())

    def test_generates_distinct_ids(self):
        """Test each call returns a new ID."""
        assert generate_request_id() != generate_request_id()


@pytest.fixture
def client():
    """Create test client for an app with request ID middleware."""
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/test")
    async def test_endpoint(request: Request):
        return {"request_id": request.state.request_id}

    return TestClient(app)


class TestRequestIdMiddleware:
    """Tests for RequestIdMiddleware."""

    def test_preserves_valid_request_id(self, client):
        """Test incoming valid X-Request-ID is preserved."""
        request_id = "550e8400-e29b-41d4-a716-446655440000"
        response = client.get("/test", headers={REQUEST_ID_HEADER: request_id})

        assert response.status_code == 200
        assert response.headers[REQUEST_ID_HEADER] == request_id
        assert response.json()["request_id"] == request_id

    def test_generates_id_when_missing(self, client):
        """Test generates new ID when header missing."""
        response = client.get("/test")

        assert is_valid_uuid(response.headers[REQUEST_ID_HEADER])
        assert response.json()["request_id"] == response.headers[REQUEST_ID_HEADER]

    @pytest.mark.parametrize("value", ["invalid-id", "", " ", "null", "a" * 1000])
    def test_replaces_invalid_request_id(self, client, value):
        """Test unusable X-Request-ID values are replaced."""
        response = client.get("/test", headers={REQUEST_ID_HEADER: value})

        assert response.status_code == 200
        assert response.headers[REQUEST_ID_HEADER] != value
        assert is_valid_uuid(response.headers[REQUEST_ID_HEADER])

    def test_generates_unique_ids(self, client):
        """Test each request without a header gets its own ID."""
        ids = {client.get("/test").headers[REQUEST_ID_HEADER] for _ in range(10)}
        assert len(ids) == 10
