"""End-to-end tests for the record endpoints.

Runs the FastAPI app against an in-memory SQLite database with signed
bearer tokens, covering the approval flow over HTTP:

1. Staged create, then approval
2. Staged update, then denial
3. Staged delete, then approval
4. Error mapping (401, 403, 400, 404, 409, 422)
"""

import pytest
from fastapi.testclient import TestClient

from backoffice.api.deps import get_db
from backoffice.api.main import app
from backoffice.core.config import Settings, get_settings
from backoffice.core.security import create_access_token


pytestmark = pytest.mark.integration

CLASSIFICATIONS = "/api/customer-classifications"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def api_settings():
    return Settings(secret_key="test-secret", bypass_auth=False, _env_file=None)


@pytest.fixture()
def client(session_factory, api_settings):
    """Test client bound to the SQLite session factory."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: api_settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def headers(api_settings):
    """Build Authorization headers for a user and their groups."""
    def _headers(username, *roles):
        token = create_access_token(username, roles, settings=api_settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers


def _create(client, headers, name, username="bob", *roles):
    response = client.post(
        CLASSIFICATIONS,
        json={"fields": {"customer_classification_name": name}},
        headers=headers(username, *(roles or ("ADMIN",))),
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestAppEndpoints:
    """Test the unauthenticated endpoints."""

    def test_health(self, client):
        """Test /health returns 200."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    def test_root_lists_resources(self, client):
        """Test / lists every entity resource."""
        resources = client.get("/").json()["resources"]
        assert "customer-classifications" in resources
        assert "product-deals" in resources
        assert len(resources) == 7


class TestAuthentication:
    """Test bearer token handling."""

    def test_missing_token(self, client):
        """Test requests without a token are refused."""
        response = client.get(CLASSIFICATIONS)
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"

    def test_invalid_token(self, client):
        """Test a token signed with another key is refused."""
        token = create_access_token("bob", ["ADMIN"], settings=Settings(secret_key="x", _env_file=None))
        response = client.get(CLASSIFICATIONS, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_bypass(self, client):
        """Test the development bypass acts as the configured admin."""
        bypass = Settings(secret_key="test-secret", bypass_auth=True, _env_file=None)
        app.dependency_overrides[get_settings] = lambda: bypass

        response = client.post(
            CLASSIFICATIONS,
            json={"fields": {"customer_classification_name": "Bypass"}},
        )

        assert response.status_code == 201
        assert response.json()["status"] == "ACTIVE"
        assert response.json()["created_by"] == "admin@old.st"


class TestApprovalFlow:
    """Test the two-tier approval flow over HTTP."""

    def test_staged_create_then_approve(self, client, headers):
        """Test a user's record becomes active once approved."""
        created = _create(client, headers, "Retail", "alice", "USER")
        assert created["status"] == "NEW_RECORD"
        assert created["activity_log"][0]["message"] == "alice created for approval"

        response = client.post(
            f"{CLASSIFICATIONS}/{created['id']}/approve",
            json={"version": created["version"]},
            headers=headers("bob", "ADMIN"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ACTIVE"
        assert data["activity_log"][-1]["text"].endswith(
            "Customer classification bob approved, status set to ACTIVE"
        )

    def test_staged_update_then_deny(self, client, headers):
        """Test a denied update leaves the committed fields."""
        created = _create(client, headers, "Retail")

        staged = client.put(
            f"{CLASSIFICATIONS}/{created['id']}",
            json={"fields": {"customer_classification_name": "Retail 2"}},
            headers=headers("alice"),
        ).json()
        assert staged["status"] == "FOR_APPROVAL"
        assert staged["fields"] == {"customer_classification_name": "Retail"}
        assert staged["pending_change"] == {"customer_classification_name": "Retail 2"}

        response = client.post(f"{CLASSIFICATIONS}/{created['id']}/deny", headers=headers("root", "SUPER_ADMIN"))

        assert response.status_code == 200
        assert response.json()["fields"] == {"customer_classification_name": "Retail"}
        assert response.json()["pending_change"] == {}

    def test_staged_delete_then_approve(self, client, headers):
        """Test an approved deletion removes the record."""
        created = _create(client, headers, "Retail")
        record_url = f"{CLASSIFICATIONS}/{created['id']}"

        marked = client.delete(record_url, headers=headers("alice"))
        assert marked.status_code == 200
        assert marked.json()["status"] == "FOR_DELETION"
        assert marked.json()["deleted"] is False

        approved = client.post(f"{record_url}/approve", headers=headers("bob", "ADMIN"))
        assert approved.status_code == 200
        assert approved.json()["deleted"] is True

        assert client.get(record_url, headers=headers("bob", "ADMIN")).status_code == 404

    def test_admin_delete(self, client, headers):
        """Test an approver deletes directly."""
        created = _create(client, headers, "Retail")
        record_url = f"{CLASSIFICATIONS}/{created['id']}"

        response = client.delete(record_url, headers=headers("bob", "ADMIN"))

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.get(record_url, headers=headers("bob", "ADMIN")).status_code == 404

    def test_product_kinds_start_for_approval(self, client, headers):
        """Test product kinds stage new records as FOR_APPROVAL."""
        response = client.post(
            "/api/product-classes",
            json={"fields": {"product_class_name": "Generic"}},
            headers=headers("alice"),
        )
        assert response.status_code == 201
        assert response.json()["status"] == "FOR_APPROVAL"


class TestErrors:
    """Test error responses."""

    def test_forbidden_review(self, client, headers):
        """Test a user without authority cannot approve."""
        created = _create(client, headers, "Retail", "alice", "USER")

        response = client.post(f"{CLASSIFICATIONS}/{created['id']}/approve", headers=headers("carol", "USER"))

        assert response.status_code == 403
        assert "not authorized to approve" in response.json()["detail"]

    def test_nothing_to_review(self, client, headers):
        """Test approving an active record is a bad request."""
        created = _create(client, headers, "Retail")

        response = client.post(f"{CLASSIFICATIONS}/{created['id']}/approve", headers=headers("bob", "ADMIN"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot approve record with status: ACTIVE"

    def test_not_found(self, client, headers):
        """Test unknown ids."""
        response = client.get(f"{CLASSIFICATIONS}/missing", headers=headers("bob", "ADMIN"))
        assert response.status_code == 404

        response = client.put(
            f"{CLASSIFICATIONS}/missing",
            json={"fields": {"customer_classification_name": "X"}},
            headers=headers("bob", "ADMIN"),
        )
        assert response.status_code == 404

    def test_duplicate_name(self, client, headers):
        """Test duplicate names conflict."""
        _create(client, headers, "Retail")

        response = client.post(
            CLASSIFICATIONS,
            json={"fields": {"customer_classification_name": "Retail"}},
            headers=headers("alice"),
        )

        assert response.status_code == 409

    def test_stale_version(self, client, headers):
        """Test an outdated version conflicts."""
        created = _create(client, headers, "Retail")

        response = client.put(
            f"{CLASSIFICATIONS}/{created['id']}",
            json={"fields": {"customer_classification_name": "Retail 2"}, "version": 99},
            headers=headers("bob", "ADMIN"),
        )

        assert response.status_code == 409

    def test_unknown_field(self, client, headers):
        """Test unknown fields are unprocessable."""
        response = client.post(
            CLASSIFICATIONS,
            json={"fields": {"customer_classification_name": "X", "colour": "red"}},
            headers=headers("bob", "ADMIN"),
        )
        assert response.status_code == 422

    def test_failed_command_rolls_back(self, client, headers):
        """Test nothing is stored when a command fails."""
        _create(client, headers, "Retail")
        client.post(
            CLASSIFICATIONS,
            json={"fields": {"customer_classification_name": "Retail"}},
            headers=headers("bob", "ADMIN"),
        )

        listing = client.get(CLASSIFICATIONS, headers=headers("bob", "ADMIN")).json()
        assert listing["total"] == 1


class TestQueries:
    """Test lookups and listing."""

    def test_list_and_filter(self, client, headers):
        """Test pagination and the status filter."""
        _create(client, headers, "A")
        _create(client, headers, "B")
        _create(client, headers, "C", "alice", "USER")

        admin = headers("bob", "ADMIN")
        page = client.get(CLASSIFICATIONS, params={"per_page": 2}, headers=admin).json()
        assert page["total"] == 3
        assert page["pages"] == 2
        assert page["has_next"] is True
        assert len(page["items"]) == 2

        pending = client.get(CLASSIFICATIONS, params={"status": "NEW_RECORD"}, headers=admin).json()
        assert [item["name"] for item in pending["items"]] == ["C"]

    def test_list_rejects_unknown_status(self, client, headers):
        """Test the status filter is validated."""
        response = client.get(CLASSIFICATIONS, params={"status": "GONE"}, headers=headers("bob", "ADMIN"))
        assert response.status_code == 422

    def test_by_name(self, client, headers):
        """Test lookup by unique name."""
        created = _create(client, headers, "Retail")
        admin = headers("bob", "ADMIN")

        response = client.get(f"{CLASSIFICATIONS}/by-name/Retail", headers=admin)
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

        assert client.get(f"{CLASSIFICATIONS}/by-name/Missing", headers=admin).status_code == 404

    def test_by_name_without_name_field(self, client, headers):
        """Test stock records have no name lookup."""
        response = client.get("/api/stocks/by-name/anything", headers=headers("bob", "ADMIN"))
        assert response.status_code == 404
