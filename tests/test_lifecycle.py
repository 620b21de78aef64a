"""
Tests for orphaning and restoring movements.

Deleting an account or a pocket keeps its movements as orphans carrying
a snapshot of the parent names. Restoring matches those names against
live parents.

Tests verify:
  - Deleting a pocket orphans its movements and drops them from balances
  - Restoring after the pocket is recreated reattaches them and
    recalculates the new parents
  - Unmatched groups are reported and counted as failed
  - Deleting an account orphans movements with the account snapshot
  - Hard delete of an account's movements
  - Restored movements lose their sub-pocket
  - A recreated fixed pocket is not a restore target
  - Deleting an orphaned movement works and touches no balance
  - An orphaned movement cannot be moved to other parents by an update
"""

from decimal import Decimal


async def _create_pocket(client, account_id, name, kind="normal"):
    response = await client.post(
        "/pockets", json={"account_id": account_id, "name": name, "kind": kind}
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Pocket deletion
# ---------------------------------------------------------------------------

class TestPocketOrphaning:

    async def test_delete_pocket_orphans_and_restore_reattaches(
        self, authenticated_client, account, pocket, create_movement, get_balance
    ):
        """Orphan a 50 income, recreate the pocket by name, restore it."""
        movement = await create_movement(
            account_id=account["id"], pocket_id=pocket["id"], amount="50"
        )
        assert await get_balance("account", account["id"]) == Decimal("50")

        response = await authenticated_client.delete(f"/pockets/{pocket['id']}")
        assert response.status_code == 200
        assert response.json() == {"pocket": 1, "sub_pockets": 0, "movements_orphaned": 1}
        assert await get_balance("account", account["id"]) == Decimal("0")

        orphans = (await authenticated_client.get("/movements/orphaned")).json()
        assert len(orphans) == 1
        assert orphans[0]["id"] == movement["id"]
        assert orphans[0]["is_orphaned"] is True
        assert orphans[0]["orphaned_account_name"] == "Main"
        assert orphans[0]["orphaned_account_currency"] == "USD"
        assert orphans[0]["orphaned_pocket_name"] == "Daily"

        recreated = await _create_pocket(authenticated_client, account["id"], "Daily")
        response = await authenticated_client.post("/movements/orphaned/restore")
        assert response.status_code == 200
        assert response.json() == {"restored": 1, "failed": 0, "unmatched": []}

        restored = (await authenticated_client.get(f"/movements/{movement['id']}")).json()
        assert restored["is_orphaned"] is False
        assert restored["pocket_id"] == recreated["id"]
        assert restored["orphaned_pocket_name"] is None
        assert await get_balance("pocket", recreated["id"]) == Decimal("50")
        assert await get_balance("account", account["id"]) == Decimal("50")

    async def test_unmatched_group_is_reported(
        self, authenticated_client, account, pocket, create_movement
    ):
        await create_movement(account_id=account["id"], pocket_id=pocket["id"])
        await create_movement(account_id=account["id"], pocket_id=pocket["id"], amount="5")
        await authenticated_client.delete(f"/pockets/{pocket['id']}")

        report = (await authenticated_client.post("/movements/orphaned/restore")).json()
        assert report["restored"] == 0
        assert report["failed"] == 2
        assert report["unmatched"] == [
            {
                "account_name": "Main",
                "account_currency": "USD",
                "pocket_name": "Daily",
                "movements": 2,
                "reason": "missing_parent",
            }
        ]
        orphans = (await authenticated_client.get("/movements/orphaned")).json()
        assert len(orphans) == 2

    async def test_restored_movement_loses_sub_pocket(
        self, authenticated_client, account, fixed_pocket, sub_pocket, create_movement, get_balance
    ):
        movement = await create_movement(
            account_id=account["id"],
            pocket_id=fixed_pocket["id"],
            sub_pocket_id=sub_pocket["id"],
            type="fixed_income",
            amount="70",
        )
        response = await authenticated_client.delete(f"/pockets/{fixed_pocket['id']}")
        assert response.json()["sub_pockets"] == 1

        recreated = await _create_pocket(authenticated_client, account["id"], "Bills")
        await authenticated_client.post("/movements/orphaned/restore")

        restored = (await authenticated_client.get(f"/movements/{movement['id']}")).json()
        assert restored["sub_pocket_id"] is None
        assert await get_balance("pocket", recreated["id"]) == Decimal("70")

    async def test_fixed_pocket_is_not_a_restore_target(
        self, authenticated_client, account, fixed_pocket, sub_pocket, create_movement, get_balance
    ):
        """Money restored without a sub-pocket would count toward no balance."""
        movement = await create_movement(
            account_id=account["id"],
            pocket_id=fixed_pocket["id"],
            sub_pocket_id=sub_pocket["id"],
            type="fixed_income",
            amount="70",
        )
        await authenticated_client.delete(f"/pockets/{fixed_pocket['id']}")
        recreated = await _create_pocket(authenticated_client, account["id"], "Bills", kind="fixed")

        report = (await authenticated_client.post("/movements/orphaned/restore")).json()
        assert report == {
            "restored": 0,
            "failed": 1,
            "unmatched": [
                {
                    "account_name": "Main",
                    "account_currency": "USD",
                    "pocket_name": "Bills",
                    "movements": 1,
                    "reason": "fixed_pocket",
                }
            ],
        }

        still_orphaned = (await authenticated_client.get(f"/movements/{movement['id']}")).json()
        assert still_orphaned["is_orphaned"] is True
        assert still_orphaned["orphaned_pocket_name"] == "Bills"
        assert await get_balance("pocket", recreated["id"]) == Decimal("0")

        balance = (await authenticated_client.get(f"/accounts/{account['id']}/balance")).json()
        assert balance["match"] is True

    async def test_orphaned_movement_references_are_frozen(
        self, authenticated_client, account, pocket, create_movement, get_balance
    ):
        movement = await create_movement(account_id=account["id"], pocket_id=pocket["id"])
        other = await _create_pocket(authenticated_client, account["id"], "Other")
        await authenticated_client.delete(f"/pockets/{pocket['id']}")

        response = await authenticated_client.patch(
            f"/movements/{movement['id']}", json={"pocket_id": other["id"]}
        )
        assert response.status_code == 422
        assert "restor" in response.json()["detail"]

        response = await authenticated_client.patch(
            f"/movements/{movement['id']}", json={"notes": "still mine"}
        )
        assert response.status_code == 200
        assert response.json()["is_orphaned"] is True
        assert await get_balance("pocket", other["id"]) == Decimal("0")
        assert await get_balance("account", account["id"]) == Decimal("0")

    async def test_delete_orphaned_movement(
        self, authenticated_client, account, pocket, create_movement, get_balance
    ):
        movement = await create_movement(account_id=account["id"], pocket_id=pocket["id"])
        other = await create_movement(
            account_id=account["id"],
            pocket_id=(await _create_pocket(authenticated_client, account["id"], "Other"))["id"],
            amount="10",
        )
        await authenticated_client.delete(f"/pockets/{pocket['id']}")

        response = await authenticated_client.delete(f"/movements/{movement['id']}")
        assert response.status_code == 204
        assert (await authenticated_client.get("/movements/orphaned")).json() == []
        assert await get_balance("pocket", other["pocket_id"]) == Decimal("10")
        assert await get_balance("account", account["id"]) == Decimal("10")


# ---------------------------------------------------------------------------
# Account deletion
# ---------------------------------------------------------------------------

class TestAccountOrphaning:

    async def test_delete_account_orphans_then_restore(
        self, authenticated_client, account, pocket, create_movement, get_balance
    ):
        await create_movement(account_id=account["id"], pocket_id=pocket["id"], amount="50")

        response = await authenticated_client.delete(f"/accounts/{account['id']}")
        assert response.status_code == 200
        assert response.json() == {
            "account": 1,
            "pockets": 1,
            "sub_pockets": 0,
            "movements": 1,
            "movements_deleted": False,
        }

        report = (await authenticated_client.post("/movements/orphaned/restore")).json()
        assert report["failed"] == 1
        assert report["unmatched"][0]["account_name"] == "Main"

        new_account = (
            await authenticated_client.post("/accounts", json={"name": "Main", "currency": "USD"})
        ).json()
        new_pocket = await _create_pocket(authenticated_client, new_account["id"], "Daily")

        report = (await authenticated_client.post("/movements/orphaned/restore")).json()
        assert report == {"restored": 1, "failed": 0, "unmatched": []}
        assert await get_balance("pocket", new_pocket["id"]) == Decimal("50")
        assert await get_balance("account", new_account["id"]) == Decimal("50")

    async def test_currency_is_part_of_the_match(
        self, authenticated_client, account, pocket, create_movement
    ):
        """An account with the same name in another currency is not a match."""
        await create_movement(account_id=account["id"], pocket_id=pocket["id"])
        await authenticated_client.delete(f"/accounts/{account['id']}")

        eur = (
            await authenticated_client.post("/accounts", json={"name": "Main", "currency": "EUR"})
        ).json()
        await _create_pocket(authenticated_client, eur["id"], "Daily")

        report = (await authenticated_client.post("/movements/orphaned/restore")).json()
        assert report["restored"] == 0
        assert report["unmatched"][0]["account_currency"] == "USD"

    async def test_delete_account_with_movements(
        self, authenticated_client, account, pocket, create_movement
    ):
        movement = await create_movement(account_id=account["id"], pocket_id=pocket["id"])

        response = await authenticated_client.delete(
            f"/accounts/{account['id']}?delete_movements=true"
        )
        assert response.status_code == 200
        assert response.json()["movements"] == 1
        assert response.json()["movements_deleted"] is True

        assert (await authenticated_client.get("/movements/orphaned")).json() == []
        response = await authenticated_client.get(f"/movements/{movement['id']}")
        assert response.status_code == 404
