"""
API tests for account endpoints.

Tests cover:
- Create account (success + validation errors)
- List accounts
- Get single account
- Error responses (400, 404, 422)
"""

from fastapi.testclient import TestClient


# =============================================================================
# CREATE ACCOUNT TESTS
# =============================================================================


class TestCreateAccountAPI:
    """Tests for POST /accounts endpoint."""

    def test_create_account_success(self, client: TestClient):
        """
        GIVEN no accounts exist
        WHEN I POST /accounts with valid data
        THEN response is 201 with account data
        """
        response = client.post("/accounts/", json={
            "name": "Brokerage",
            "institution": "Fidelity",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Brokerage"
        assert data["institution"] == "Fidelity"
        assert data["account_id"]
        assert data["created_at_est"] is not None

    def test_create_account_duplicate_name(self, client: TestClient):
        """
        GIVEN an account named "Brokerage" exists
        WHEN I POST another account with the same name
        THEN response is 400 with a validation error body
        """
        client.post("/accounts/", json={"name": "Brokerage"})

        response = client.post("/accounts/", json={"name": "Brokerage"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert "already exists" in response.json()["message"]

    def test_create_account_blank_name(self, client: TestClient):
        response = client.post("/accounts/", json={"name": "   "})

        assert response.status_code == 400

    def test_create_account_trims_name_and_blank_institution(self, client: TestClient):
        response = client.post("/accounts/", json={"name": "  Checking ", "institution": "  "})

        assert response.status_code == 201
        assert response.json()["name"] == "Checking"
        assert response.json()["institution"] is None

    def test_create_account_missing_name(self, client: TestClient):
        response = client.post("/accounts/", json={})

        assert response.status_code == 422


# =============================================================================
# READ ACCOUNT TESTS
# =============================================================================


class TestReadAccountAPI:
    """Tests for GET /accounts endpoints."""

    def test_list_accounts(self, client: TestClient):
        client.post("/accounts/", json={"name": "Checking"})
        client.post("/accounts/", json={"name": "Brokerage"})

        response = client.get("/accounts/")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [a["name"] for a in data["accounts"]] == ["Brokerage", "Checking"]

    def test_get_account(self, client: TestClient):
        created = client.post("/accounts/", json={"name": "Checking"}).json()

        response = client.get(f"/accounts/{created['account_id']}")

        assert response.status_code == 200
        assert response.json()["name"] == "Checking"

    def test_get_account_not_found(self, client: TestClient):
        """
        GIVEN no account with the ID exists
        WHEN I GET /accounts/{id}
        THEN response is 404 with the error body
        """
        response = client.get("/accounts/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "error": "NOT_FOUND",
            "message": "Account not found: does-not-exist",
        }


class TestHealthAPI:
    """Tests for service endpoints."""

    def test_health(self, client: TestClient):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client: TestClient):
        assert client.get("/").json()["docs"] == "/docs"
