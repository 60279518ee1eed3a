"""
Tests for the generated resource endpoints.

These tests verify:
- Response envelopes and status codes for CRUD operations
- Filters, sorting and pagination on list endpoints
- Validation and not-found errors
- Bearer authentication and record ownership
- Health endpoints
"""

import pytest


# =============================================================================
# Create / Read
# =============================================================================

class TestCreateAndRead:
    """Tests for POST and GET on resources."""

    def test_create_returns_envelope(self, client):
        """POST should return 201 with the stored record and a message."""
        response = client.post("/api/users", json={"name": "Ann", "age": 30})

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Resource created successfully"
        assert body["data"]["id"] == 1
        assert body["data"]["name"] == "Ann"
        assert body["data"]["createdAt"] == body["data"]["updatedAt"]

    def test_create_assigns_sequential_ids(self, client):
        ids = [client.post("/api/users", json={"name": n}).json()["data"]["id"] for n in ("Ann", "Bob")]

        assert ids == [1, 2]

    def test_get_by_id(self, client):
        client.post("/api/users", json={"name": "Ann"})

        response = client.get("/api/users/1")

        assert response.status_code == 200
        assert response.json()["name"] == "Ann"

    def test_get_missing_record(self, client, assert_error_response):
        assert_error_response(client.get("/api/users/99"), 404, "Not found")

    def test_unknown_resource(self, client, assert_error_response):
        assert_error_response(client.get("/api/comments"), 404, "Resource not found")
        assert_error_response(client.post("/api/comments", json={"text": "x"}), 404, "Resource not found")

    def test_validation_errors_listed(self, client):
        response = client.post("/api/users", json={"name": "A", "age": 200})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Validation error",
            "details": ["name must be at least 2 characters", "age must be at most 150"],
        }

    def test_supplied_auto_increment_rejected(self, client):
        response = client.post("/api/users", json={"id": 5, "name": "Ann"})

        assert response.status_code == 400
        assert response.json()["details"] == ["id is assigned automatically and cannot be set"]

    def test_non_object_body_rejected(self, client):
        response = client.post("/api/users", json=["Ann"])

        assert response.status_code == 400

    def test_malformed_json_body(self, client, users):
        response = client.post(
            "/api/users",
            content="{bad",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"
        assert len(response.json()["details"]) == 1
        assert len(users) == 0

    def test_failed_validation_stores_nothing(self, client, users):
        client.post("/api/users", json={"name": "A"})

        assert len(users) == 0

    def test_duplicate_supplied_id(self, client):
        assert client.post("/api/posts", json={"id": "hello", "title": "Hi"}).status_code == 201

        response = client.post("/api/posts", json={"id": "hello", "title": "Again"})

        assert response.status_code == 409

    def test_create_persists_snapshot(self, client, read_snapshot):
        client.post("/api/users", json={"name": "Ann"})

        assert read_snapshot()["users"]["records"][0]["name"] == "Ann"


# =============================================================================
# List
# =============================================================================

class TestList:
    """Tests for GET /{resource}."""

    @pytest.fixture
    def seeded(self, client):
        for name, age in [("Ann", 30), ("Bob", 8), ("Cid", 45), ("Dee", 17)]:
            client.post("/api/users", json={"name": name, "age": age})
        return client

    def test_list_envelope(self, seeded, assert_pagination_response):
        data = assert_pagination_response(seeded.get("/api/users"), total=4)

        assert [r["name"] for r in data["data"]] == ["Ann", "Bob", "Cid", "Dee"]
        assert data["pagination"]["total_pages"] == 1

    def test_pagination_window(self, seeded, assert_pagination_response):
        response = seeded.get("/api/users", params={"current_page": 2, "page_size": 3})

        data = assert_pagination_response(response, total=4, current_page=2, per_page=3)
        assert [r["name"] for r in data["data"]] == ["Dee"]

    def test_invalid_page_rejected(self, seeded):
        response = seeded.get("/api/users", params={"current_page": 0})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation error"
        assert body["details"][0].startswith("query.current_page:")

    def test_equality_filter(self, seeded, assert_pagination_response):
        data = assert_pagination_response(seeded.get("/api/users", params={"name": "Ann"}), total=1)

        assert data["data"][0]["age"] == 30

    def test_operator_filter(self, seeded, assert_pagination_response):
        response = seeded.get("/api/users", params={"age__gt": 10, "age__lte": 30})

        data = assert_pagination_response(response, total=2)
        assert [r["name"] for r in data["data"]] == ["Ann", "Dee"]

    def test_filter_total_counts_matches(self, seeded, assert_pagination_response):
        response = seeded.get("/api/users", params={"age__gte": 10, "page_size": 1})

        assert_pagination_response(response, total=3, per_page=1)

    def test_sorting(self, seeded):
        response = seeded.get("/api/users", params={"_sort": "age", "_order": "desc"})

        assert [r["name"] for r in response.json()["data"]] == ["Cid", "Ann", "Dee", "Bob"]

    def test_empty_resource(self, client, assert_pagination_response):
        data = assert_pagination_response(client.get("/api/posts"), total=0)

        assert data["data"] == []


# =============================================================================
# Update / Delete
# =============================================================================

class TestUpdateAndDelete:
    """Tests for PUT, PATCH and DELETE."""

    @pytest.fixture
    def ann(self, client) -> dict:
        return client.post("/api/users", json={"name": "Ann", "age": 30}).json()["data"]

    def test_put_with_full_record(self, client, ann):
        response = client.put("/api/users/1", json={**ann, "age": 31})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Resource updated successfully"
        assert body["data"]["age"] == 31
        assert body["data"]["id"] == 1
        assert body["data"]["updatedAt"] > ann["updatedAt"]

    def test_put_requires_required_fields(self, client, ann):
        response = client.put("/api/users/1", json={"age": 31})

        assert response.status_code == 400
        assert response.json()["details"] == ["name is required"]

    def test_patch_partial(self, client, ann):
        response = client.patch("/api/users/1", json={"age": 31})

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ann"
        assert response.json()["data"]["age"] == 31

    def test_patch_checks_supplied_values(self, client, ann):
        response = client.patch("/api/users/1", json={"age": -5})

        assert response.status_code == 400
        assert response.json()["details"] == ["age must be at least 0"]

    def test_update_missing_record(self, client, assert_error_response):
        assert_error_response(client.patch("/api/users/42", json={"age": 1}), 404)

    def test_delete(self, client, ann, users):
        response = client.delete("/api/users/1")

        assert response.status_code == 204
        assert response.content == b""
        assert len(users) == 0

    def test_delete_missing_record(self, client, assert_error_response):
        assert_error_response(client.delete("/api/users/1"), 404)

    def test_id_not_reused_after_delete(self, client, ann):
        client.delete("/api/users/1")

        assert client.post("/api/users", json={"name": "Bob"}).json()["data"]["id"] == 2


# =============================================================================
# Authentication
# =============================================================================

class TestAuthentication:
    """Tests for the bearer-token guard and ownership rule."""

    def test_token_required(self, auth_client, assert_error_response):
        response = auth_client.get("/api/users")

        assert_error_response(response, 401, "Authentication required")
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, auth_client, assert_error_response):
        response = auth_client.get("/api/users", headers={"Authorization": "Bearer junk"})

        assert_error_response(response, 401, "Invalid token")

    def test_bearer_header(self, auth_client, auth_headers):
        assert auth_client.get("/api/users", headers=auth_headers()).status_code == 200

    def test_query_token(self, auth_client, auth_guard):
        token = auth_guard.generate_token({"sub": "alice"})

        assert auth_client.get("/api/users", params={"token": token}).status_code == 200

    def test_token_param_is_not_a_filter(self, auth_client, auth_guard, auth_headers):
        auth_client.post("/api/users", json={"name": "Ann"}, headers=auth_headers())
        token = auth_guard.generate_token({"sub": "alice"})

        response = auth_client.get("/api/users", params={"token": token})

        assert response.json()["pagination"]["total"] == 1

    def test_create_records_owner(self, auth_client, auth_headers):
        response = auth_client.post("/api/users", json={"name": "Ann"}, headers=auth_headers("alice"))

        assert response.json()["data"]["createdBy"] == "alice"

    def test_owner_can_update_and_delete(self, auth_client, auth_headers):
        auth_client.post("/api/users", json={"name": "Ann"}, headers=auth_headers("alice"))

        patched = auth_client.patch("/api/users/1", json={"age": 3}, headers=auth_headers("alice"))
        deleted = auth_client.delete("/api/users/1", headers=auth_headers("alice"))

        assert patched.status_code == 200
        assert deleted.status_code == 204

    def test_other_principal_forbidden(self, auth_client, auth_headers, users, assert_error_response):
        auth_client.post("/api/users", json={"name": "Ann"}, headers=auth_headers("alice"))

        assert_error_response(
            auth_client.put("/api/users/1", json={"name": "Eve"}, headers=auth_headers("bob")),
            403,
            "Permission denied",
        )
        assert_error_response(auth_client.delete("/api/users/1", headers=auth_headers("bob")), 403)
        assert users.find_by_id(1)["name"] == "Ann"

    def test_record_without_owner_is_read_only(self, auth_client, auth_headers, users):
        users.insert({"name": "Ann"})

        response = auth_client.patch("/api/users/1", json={"age": 1}, headers=auth_headers())

        assert response.status_code == 403

    def test_validation_runs_before_ownership(self, auth_client, auth_headers):
        auth_client.post("/api/users", json={"name": "Ann"}, headers=auth_headers("alice"))

        response = auth_client.patch("/api/users/1", json={"age": "old"}, headers=auth_headers("bob"))

        assert response.status_code == 400

    def test_health_is_public(self, auth_client):
        assert auth_client.get("/health").status_code == 200


# =============================================================================
# Health and Root
# =============================================================================

class TestHealthEndpoints:
    """Tests for /health, /health/ready and /."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_readiness(self, client):
        data = client.get("/health/ready").json()

        assert data["status"] == "healthy"
        assert data["checks"] == {"api": "healthy", "store": "healthy", "storage": "healthy"}
        assert data["resources"] == ["users", "posts"]

    def test_readiness_degraded_after_failed_write(self, client, monkeypatch):
        import mockapi.database.store as store_module

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(store_module.os, "replace", failing_replace)
        response = client.post("/api/users", json={"name": "Ann"})
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to persist data")
        data = client.get("/health/ready").json()
        assert data["status"] == "degraded"
        assert "pending" in data["checks"]["storage"]

    def test_root(self, client):
        data = client.get("/").json()

        assert data["prefix"] == "/api"
        assert data["resources"] == ["users", "posts"]


# =============================================================================
# OpenAPI
# =============================================================================

class TestOpenAPI:
    """Tests for the generated API documentation."""

    def test_error_responses_documented(self, app):
        schema = app.openapi()
        responses = schema["paths"]["/api/{resource}/{record_id}"]["patch"]["responses"]

        assert "ErrorResponse" in schema["components"]["schemas"]
        for code in ("400", "401", "403", "404"):
            assert responses[code]["content"]["application/json"]["schema"] == {
                "$ref": "#/components/schemas/ErrorResponse"
            }
