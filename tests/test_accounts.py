"""
Tests for account management endpoints.

These tests verify:
  - Accounts are created with a zero balance and a supported currency
  - Name + currency is unique per user (409); the same name in another
    currency is allowed
  - Listing, fetching and renaming
  - The balance check compares the cached balance with a fresh
    aggregation and flags drift
  - The recalculation sweep heals drift across every tier
  - Cascade delete removes pockets and sub-pockets
"""

import uuid
from decimal import Decimal

from pocket_ledger.models import Account, Pocket


# ---------------------------------------------------------------------------
# Creation and retrieval
# ---------------------------------------------------------------------------

class TestAccountCreation:
    """Tests for POST /accounts."""

    async def test_create_account(self, authenticated_client):
        response = await authenticated_client.post(
            "/accounts", json={"name": "Checking", "currency": "MXN"}
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Checking"
        assert data["currency"] == "MXN"
        assert data["balance"] == "0.000000"

    async def test_default_currency_is_usd(self, authenticated_client):
        response = await authenticated_client.post("/accounts", json={"name": "Wallet"})
        assert response.status_code == 201
        assert response.json()["currency"] == "USD"

    async def test_unsupported_currency_rejected(self, authenticated_client):
        response = await authenticated_client.post(
            "/accounts", json={"name": "Wallet", "currency": "XYZ"}
        )
        assert response.status_code == 422

    async def test_duplicate_name_and_currency_conflict(self, authenticated_client, account):
        response = await authenticated_client.post(
            "/accounts", json={"name": "Main", "currency": "USD"}
        )
        assert response.status_code == 409

    async def test_same_name_other_currency_allowed(self, authenticated_client, account):
        response = await authenticated_client.post(
            "/accounts", json={"name": "Main", "currency": "COP"}
        )
        assert response.status_code == 201

    async def test_list_and_get(self, authenticated_client, account):
        await authenticated_client.post("/accounts", json={"name": "Second"})

        listed = await authenticated_client.get("/accounts")
        assert listed.status_code == 200
        assert len(listed.json()) == 2

        fetched = await authenticated_client.get(f"/accounts/{account['id']}")
        assert fetched.json()["name"] == "Main"

    async def test_get_unknown_account(self, authenticated_client):
        response = await authenticated_client.get(f"/accounts/{uuid.uuid4()}")
        assert response.status_code == 404


class TestAccountRename:
    """Tests for PATCH /accounts/{id}."""

    async def test_rename(self, authenticated_client, account):
        response = await authenticated_client.patch(
            f"/accounts/{account['id']}", json={"name": "Everyday"}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Everyday"

    async def test_rename_onto_existing_conflicts(self, authenticated_client, account):
        await authenticated_client.post("/accounts", json={"name": "Savings"})
        response = await authenticated_client.patch(
            f"/accounts/{account['id']}", json={"name": "Savings"}
        )
        assert response.status_code == 409


# ---------------------------------------------------------------------------
# Balance check and sweep
# ---------------------------------------------------------------------------

class TestBalanceCheck:
    """Tests for GET /accounts/{id}/balance and the recalculation sweep."""

    async def test_balances_match_after_movements(
        self, authenticated_client, account, pocket, fixed_pocket, sub_pocket, create_movement
    ):
        await create_movement(account_id=account["id"], pocket_id=pocket["id"], amount="100")
        await create_movement(
            account_id=account["id"],
            pocket_id=fixed_pocket["id"],
            sub_pocket_id=sub_pocket["id"],
            type="fixed_income",
            amount="50.25",
        )

        response = await authenticated_client.get(f"/accounts/{account['id']}/balance")
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["cached_balance"]) == Decimal("150.25")
        assert Decimal(data["computed_balance"]) == Decimal("150.25")
        assert data["match"] is True

    async def test_drift_detected_and_healed(
        self, authenticated_client, db_session, account, pocket, create_movement
    ):
        """A hand-corrupted cache is flagged, then fixed by the sweep."""
        await create_movement(account_id=account["id"], pocket_id=pocket["id"], amount="40")
        account_row = await db_session.get(Account, uuid.UUID(account["id"]))
        pocket_row = await db_session.get(Pocket, uuid.UUID(pocket["id"]))
        account_row.balance = Decimal("1")
        pocket_row.balance = Decimal("2")
        await db_session.commit()

        data = (await authenticated_client.get(f"/accounts/{account['id']}/balance")).json()
        assert data["match"] is False
        assert Decimal(data["computed_balance"]) == Decimal("40")

        response = await authenticated_client.post("/accounts/recalculate-balances")
        assert response.status_code == 200
        assert response.json() == {"sub_pockets": 0, "pockets": 1, "accounts": 1, "skipped": 0}

        data = (await authenticated_client.get(f"/accounts/{account['id']}/balance")).json()
        assert data["match"] is True
        assert Decimal(data["cached_balance"]) == Decimal("40")

    async def test_sweep_is_idempotent(self, authenticated_client, account, pocket, create_movement):
        await create_movement(account_id=account["id"], pocket_id=pocket["id"], amount="12")
        first = await authenticated_client.post("/accounts/recalculate-balances")
        second = await authenticated_client.post("/accounts/recalculate-balances")
        assert first.json() == second.json()

        fetched = (await authenticated_client.get(f"/accounts/{account['id']}")).json()
        assert Decimal(fetched["balance"]) == Decimal("12")


# ---------------------------------------------------------------------------
# Cascade delete
# ---------------------------------------------------------------------------

class TestAccountDelete:
    """Tests for DELETE /accounts/{id}."""

    async def test_cascade_counts(
        self, authenticated_client, account, pocket, fixed_pocket, sub_pocket
    ):
        response = await authenticated_client.delete(f"/accounts/{account['id']}")
        assert response.status_code == 200
        assert response.json() == {
            "account": 1,
            "pockets": 2,
            "sub_pockets": 1,
            "movements": 0,
            "movements_deleted": False,
        }

        assert (await authenticated_client.get(f"/accounts/{account['id']}")).status_code == 404
        assert (await authenticated_client.get(f"/pockets/{pocket['id']}")).status_code == 404
        assert (await authenticated_client.get("/sub-pockets")).json() == []

    async def test_delete_unknown_account(self, authenticated_client):
        response = await authenticated_client.delete(f"/accounts/{uuid.uuid4()}")
        assert response.status_code == 404
