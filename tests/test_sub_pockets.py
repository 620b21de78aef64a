"""
Tests for sub-pocket endpoints.

These tests verify:
  - Sub-pockets can only be created under the fixed pocket
  - value_total must be positive, periodicity at least one month
  - Partial updates, including disabling, never touch the balance
  - A sub-pocket with movements cannot be deleted (409)
"""

import uuid
from decimal import Decimal


class TestSubPocketCreation:

    async def test_create_under_fixed_pocket(self, authenticated_client, fixed_pocket):
        response = await authenticated_client.post(
            "/sub-pockets",
            json={
                "pocket_id": fixed_pocket["id"],
                "name": "Insurance",
                "value_total": "600.50",
                "periodicity_months": 6,
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["value_total"] == "600.500000"
        assert data["periodicity_months"] == 6
        assert data["enabled"] is True
        assert data["balance"] == "0.000000"

    async def test_normal_pocket_rejected(self, authenticated_client, pocket):
        response = await authenticated_client.post(
            "/sub-pockets",
            json={"pocket_id": pocket["id"], "name": "Gym", "value_total": "30"},
        )
        assert response.status_code == 422
        assert "fixed pockets" in response.json()["detail"]

    async def test_non_positive_value_rejected(self, authenticated_client, fixed_pocket):
        response = await authenticated_client.post(
            "/sub-pockets",
            json={"pocket_id": fixed_pocket["id"], "name": "Gym", "value_total": "0"},
        )
        assert response.status_code == 422

    async def test_zero_periodicity_rejected(self, authenticated_client, fixed_pocket):
        response = await authenticated_client.post(
            "/sub-pockets",
            json={
                "pocket_id": fixed_pocket["id"],
                "name": "Gym",
                "value_total": "30",
                "periodicity_months": 0,
            },
        )
        assert response.status_code == 422

    async def test_unknown_pocket(self, authenticated_client):
        response = await authenticated_client.post(
            "/sub-pockets",
            json={"pocket_id": str(uuid.uuid4()), "name": "Gym", "value_total": "30"},
        )
        assert response.status_code == 404


class TestSubPocketUpdate:

    async def test_disable_keeps_balance(
        self, authenticated_client, account, fixed_pocket, sub_pocket, create_movement
    ):
        await create_movement(
            account_id=account["id"],
            pocket_id=fixed_pocket["id"],
            sub_pocket_id=sub_pocket["id"],
            type="fixed_income",
            amount="100",
        )
        response = await authenticated_client.patch(
            f"/sub-pockets/{sub_pocket['id']}",
            json={"enabled": False, "value_total": "1300"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["enabled"] is False
        assert data["name"] == "Rent"
        assert Decimal(data["value_total"]) == Decimal("1300")
        assert Decimal(data["balance"]) == Decimal("100")

    async def test_list_by_pocket(self, authenticated_client, fixed_pocket, sub_pocket):
        response = await authenticated_client.get(f"/sub-pockets?pocket_id={fixed_pocket['id']}")
        assert [s["id"] for s in response.json()] == [sub_pocket["id"]]


class TestSubPocketDelete:

    async def test_delete_unused(self, authenticated_client, sub_pocket):
        response = await authenticated_client.delete(f"/sub-pockets/{sub_pocket['id']}")
        assert response.status_code == 204
        assert (await authenticated_client.get("/sub-pockets")).json() == []

    async def test_delete_with_movements_conflicts(
        self, authenticated_client, account, fixed_pocket, sub_pocket, create_movement
    ):
        await create_movement(
            account_id=account["id"],
            pocket_id=fixed_pocket["id"],
            sub_pocket_id=sub_pocket["id"],
            type="fixed_expense",
            amount="10",
        )
        response = await authenticated_client.delete(f"/sub-pockets/{sub_pocket['id']}")
        assert response.status_code == 409
        assert response.json()["error_type"] == "conflict"
