"""
API tests for journal endpoints.

Tests cover:
- Append transaction (success, imbalance, invalid postings)
- Get and reverse transactions
- List postings with date filters
- Remove import batches
- Validation errors (400, 404, 422)
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient


# =============================================================================
# HELPER FIXTURES
# =============================================================================


@pytest.fixture
def test_account(client: TestClient) -> dict:
    """Create a test account and return its data."""
    response = client.post("/accounts/", json={"name": "Test Account"})
    return response.json()


def deposit_payload(account_id: str, txn_date: str, amount: str, **extra) -> dict:
    payload = {
        "account_id": account_id,
        "txn_date": txn_date,
        "txn_type": "DEPOSIT",
        "description": "Deposit",
        "postings": [
            {"account_type": "CASH", "ledger_account": "Cash USD", "side": "DEBIT", "amount": amount},
            {"account_type": "EQUITY", "ledger_account": "Contributions", "side": "CREDIT", "amount": amount},
        ],
    }
    payload.update(extra)
    return payload


# =============================================================================
# APPEND TRANSACTION TESTS
# =============================================================================


class TestAppendTransactionAPI:
    """Tests for POST /journal/transactions endpoint."""

    def test_append_deposit(self, client: TestClient, test_account: dict):
        """
        GIVEN an account exists
        WHEN I POST a balanced deposit
        THEN response is 201 with sequence 1 and signed posting effects
        """
        response = client.post(
            "/journal/transactions",
            json=deposit_payload(test_account["account_id"], "2024-01-02", "1000"),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["sequence"] == 1
        assert data["txn_type"] == "DEPOSIT"
        assert [Decimal(p["effect"]) for p in data["postings"]] == [Decimal("1000"), Decimal("1000")]
        assert [p["line_no"] for p in data["postings"]] == [1, 2]

    def test_append_buy_with_quantity(self, client: TestClient, test_account: dict):
        response = client.post("/journal/transactions", json={
            "account_id": test_account["account_id"],
            "txn_date": "2024-01-10",
            "txn_type": "BUY",
            "postings": [
                {"account_type": "ASSET", "ledger_account": "abc", "side": "DEBIT",
                 "amount": "1000", "quantity": "10"},
                {"account_type": "CASH", "ledger_account": "Cash USD", "side": "CREDIT", "amount": "1000"},
            ],
        })

        assert response.status_code == 201
        asset = response.json()["postings"][0]
        assert asset["ledger_account"] == "ABC"
        assert Decimal(asset["effect"]) == Decimal("10")

    def test_imbalanced_rejected(self, client: TestClient, test_account: dict):
        """
        GIVEN debits of 100 and credits of 99.99
        WHEN I POST the transaction without allow_rounding
        THEN response is 400 and nothing is stored
        """
        payload = deposit_payload(test_account["account_id"], "2024-01-02", "100")
        payload["postings"][1]["amount"] = "99.99"

        response = client.post("/journal/transactions", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "IMBALANCED_TRANSACTION"
        postings = client.get("/journal/postings", params={"account_id": test_account["account_id"]})
        assert postings.json()["count"] == 0

    def test_rounding_difference_allowed_on_request(self, client: TestClient, test_account: dict):
        payload = deposit_payload(test_account["account_id"], "2024-01-02", "100", allow_rounding=True)
        payload["postings"][1]["amount"] = "99.99"

        response = client.post("/journal/transactions", json=payload)

        assert response.status_code == 201

    def test_single_posting_rejected(self, client: TestClient, test_account: dict):
        payload = deposit_payload(test_account["account_id"], "2024-01-02", "100")
        payload["postings"] = payload["postings"][:1]

        response = client.post("/journal/transactions", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_POSTING"

    def test_asset_without_quantity_rejected(self, client: TestClient, test_account: dict):
        response = client.post("/journal/transactions", json={
            "account_id": test_account["account_id"],
            "txn_date": "2024-01-10",
            "postings": [
                {"account_type": "ASSET", "ledger_account": "ABC", "side": "DEBIT", "amount": "10"},
                {"account_type": "CASH", "ledger_account": "Cash USD", "side": "CREDIT", "amount": "10"},
            ],
        })

        assert response.status_code == 400
        assert "quantity" in response.json()["message"]

    def test_sub_cent_fraction_rejected(self, client: TestClient, test_account: dict):
        response = client.post("/journal/transactions", json={
            "account_id": test_account["account_id"],
            "txn_date": "2024-01-02",
            "postings": [
                {"account_type": "CASH", "ledger_account": "Cash USD", "side": "DEBIT", "amount": "0.00006"},
                {"account_type": "CASH", "ledger_account": "Cash USD", "side": "DEBIT", "amount": "0.00006"},
                {"account_type": "EQUITY", "ledger_account": "Contributions", "side": "CREDIT", "amount": "0.00012"},
            ],
        })

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_POSTING"
        postings = client.get("/journal/postings", params={"account_id": test_account["account_id"]})
        assert postings.json()["postings"] == []

    def test_timestamp_maps_to_eastern_date(self, client: TestClient, test_account: dict):
        """
        GIVEN a UTC timestamp early on Jan 11
        WHEN I POST it as the transaction date
        THEN the transaction is dated Jan 10, the US/Eastern calendar date
        """
        response = client.post(
            "/journal/transactions",
            json=deposit_payload(test_account["account_id"], "2024-01-11T03:30:00Z", "10"),
        )

        assert response.status_code == 201
        assert response.json()["txn_date"] == "2024-01-10"

    def test_unknown_account(self, client: TestClient):
        response = client.post("/journal/transactions", json=deposit_payload("missing", "2024-01-02", "10"))

        assert response.status_code == 404

    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    def test_invalid_amount_is_422(self, client: TestClient, test_account: dict, amount: str):
        response = client.post(
            "/journal/transactions",
            json=deposit_payload(test_account["account_id"], "2024-01-02", amount),
        )

        assert response.status_code == 422

    def test_invalid_side_is_422(self, client: TestClient, test_account: dict):
        payload = deposit_payload(test_account["account_id"], "2024-01-02", "10")
        payload["postings"][0]["side"] = "SIDEWAYS"

        response = client.post("/journal/transactions", json=payload)

        assert response.status_code == 422


# =============================================================================
# READ AND REVERSE TESTS
# =============================================================================


class TestTransactionReadAPI:
    """Tests for transaction lookup and reversal."""

    def test_get_transaction(self, client: TestClient, test_account: dict):
        created = client.post(
            "/journal/transactions",
            json=deposit_payload(test_account["account_id"], "2024-01-02", "50"),
        ).json()

        response = client.get(f"/journal/transactions/{created['txn_id']}")

        assert response.status_code == 200
        assert response.json()["txn_id"] == created["txn_id"]

    def test_get_transaction_not_found(self, client: TestClient):
        response = client.get("/journal/transactions/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_reverse_transaction(self, client: TestClient, test_account: dict):
        """
        GIVEN a deposit of 50
        WHEN I reverse it on a later date
        THEN a reversal with flipped sides is appended and cash nets to zero
        """
        account_id = test_account["account_id"]
        created = client.post(
            "/journal/transactions",
            json=deposit_payload(account_id, "2024-01-02", "50"),
        ).json()

        response = client.post(
            f"/journal/transactions/{created['txn_id']}/reverse",
            json={"on": "2024-01-05"},
        )

        assert response.status_code == 201
        reversal = response.json()
        assert reversal["txn_type"] == "REVERSAL"
        assert reversal["reverses_txn_id"] == created["txn_id"]
        assert reversal["txn_date"] == "2024-01-05"
        assert [p["side"] for p in reversal["postings"]] == ["CREDIT", "DEBIT"]

        timeline = client.get("/analysis/timeline", params={
            "account_id": account_id,
            "ledger_account": "Cash USD",
        }).json()
        assert Decimal(timeline["final_value"]) == Decimal("0")

    def test_reverse_twice_rejected(self, client: TestClient, test_account: dict):
        created = client.post(
            "/journal/transactions",
            json=deposit_payload(test_account["account_id"], "2024-01-02", "50"),
        ).json()
        client.post(f"/journal/transactions/{created['txn_id']}/reverse")

        response = client.post(f"/journal/transactions/{created['txn_id']}/reverse")

        assert response.status_code == 400
        assert "already reversed" in response.json()["message"]


# =============================================================================
# POSTINGS AND BATCH TESTS
# =============================================================================


class TestPostingsAPI:
    """Tests for GET /journal/postings and batch removal."""

    def test_postings_ordered_and_filtered(self, client: TestClient, test_account: dict):
        account_id = test_account["account_id"]
        for txn_date in ("2024-03-01", "2024-01-02", "2024-02-01"):
            client.post("/journal/transactions", json=deposit_payload(account_id, txn_date, "10"))

        everything = client.get("/journal/postings", params={"account_id": account_id}).json()
        february = client.get("/journal/postings", params={
            "account_id": account_id,
            "start": "2024-02-01",
            "end": "2024-02-29",
        }).json()

        assert everything["count"] == 6
        dates = [p["txn_date"] for p in everything["postings"]]
        assert dates == sorted(dates)
        assert {p["txn_date"] for p in february["postings"]} == {"2024-02-01"}

    def test_postings_unknown_account(self, client: TestClient):
        response = client.get("/journal/postings", params={"account_id": "missing"})

        assert response.status_code == 404

    def test_postings_require_account(self, client: TestClient):
        response = client.get("/journal/postings")

        assert response.status_code == 422

    def test_remove_batch(self, client: TestClient, test_account: dict):
        """
        GIVEN two deposits imported in batch "import-7" and one manual deposit
        WHEN I DELETE the batch
        THEN two transactions are removed and only the manual one remains
        """
        account_id = test_account["account_id"]
        client.post("/journal/transactions", json=deposit_payload(account_id, "2024-01-02", "10", batch_id="import-7"))
        client.post("/journal/transactions", json=deposit_payload(account_id, "2024-01-03", "20", batch_id="import-7"))
        client.post("/journal/transactions", json=deposit_payload(account_id, "2024-01-04", "30"))

        response = client.delete("/journal/batches/import-7")

        assert response.status_code == 200
        assert response.json() == {"batch_id": "import-7", "removed": 2}
        remaining = client.get("/journal/postings", params={"account_id": account_id}).json()
        assert {p["txn_date"] for p in remaining["postings"]} == {"2024-01-04"}

    def test_remove_unknown_batch(self, client: TestClient):
        response = client.delete("/journal/batches/none")

        assert response.status_code == 404
