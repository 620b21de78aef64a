"""
Lifecycle workflows that move many movements at once between the
attached and orphaned states.

Orphaning happens when an account or a pocket is deleted: the movements
are kept, flagged, and given a snapshot of the deleted parent's name
(account name, currency, pocket name). They stop counting toward any
balance.

Restoring is the way back. All orphaned movements of the user are
grouped by (account name, currency) and then by pocket name. Each group
is matched against the live accounts and pockets by those names; a
matched group is reattached, an unmatched one is reported so the caller
can create the missing parent and retry. Parents are never created here.

Restored movements lose their sub-pocket reference: the snapshot does
not record which sub-pocket a movement had, so there is nothing to match
it against. For the same reason a group whose pocket name now belongs to
a fixed pocket stays orphaned: a fixed pocket only counts money held by
its sub-pockets, so the movement would vanish from every balance.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field

from pocket_ledger.domain.affected import AffectedEntities
from pocket_ledger.domain.movement import Movement
from pocket_ledger.exceptions import ValidationError
from pocket_ledger.models import Account, Pocket
from pocket_ledger.repositories.registry import Repositories


logger = logging.getLogger(__name__)


@dataclass
class UnmatchedGroup:
    account_name: str
    account_currency: str
    pocket_name: str
    movements: int
    reason: str = "missing_parent"


@dataclass
class RestoreReport:
    restored: int = 0
    failed: int = 0
    unmatched: list[UnmatchedGroup] = field(default_factory=list)
    affected: AffectedEntities = field(default_factory=AffectedEntities)


async def orphan_pocket_movements(
    repos: Repositories,
    pocket: Pocket,
    account: Account,
    user_id: uuid.UUID,
) -> int:
    """Orphan the attached movements of a pocket that is about to be deleted."""
    count = await repos.movements.mark_as_orphaned_by_pocket_id(
        pocket.id, account.name, account.currency, pocket.name, user_id
    )
    logger.info(
        "movement.orphaned",
        extra={"extra_fields": {"pocket_id": str(pocket.id), "count": count}},
    )
    return count


async def orphan_account_movements(
    repos: Repositories,
    account: Account,
    user_id: uuid.UUID,
) -> int:
    """Orphan the attached movements of an account that is about to be deleted."""
    count = await repos.movements.mark_as_orphaned_by_account_id(
        account.id, account.name, account.currency, user_id
    )
    logger.info(
        "movement.orphaned",
        extra={"extra_fields": {"account_id": str(account.id), "count": count}},
    )
    return count


def _group_orphans(
    movements: list[Movement],
) -> dict[tuple[str, str], dict[str, list[Movement]]]:
    groups: dict[tuple[str, str], dict[str, list[Movement]]] = defaultdict(
        lambda: defaultdict(list)
    )
    for movement in movements:
        key = (movement.orphaned_account_name, movement.orphaned_account_currency)
        groups[key][movement.orphaned_pocket_name].append(movement)
    return groups


async def restore_orphaned_movements(
    repos: Repositories,
    user_id: uuid.UUID,
) -> RestoreReport:
    """
    Reattach every orphaned movement whose parents exist again.

    Balances are not recalculated here; the report carries the new
    parents in `affected` for the caller's cascade.
    """
    report = RestoreReport()
    orphans = await repos.movements.find_orphaned(user_id)

    for (account_name, currency), by_pocket in _group_orphans(orphans).items():
        account = await repos.accounts.find_by_name_and_currency(account_name, currency, user_id)

        for pocket_name, movements in by_pocket.items():
            pocket = None
            if account is not None:
                pocket = await repos.pockets.find_by_name(account.id, pocket_name, user_id)

            if pocket is None or pocket.is_fixed:
                report.failed += len(movements)
                report.unmatched.append(
                    UnmatchedGroup(
                        account_name=account_name,
                        account_currency=currency,
                        pocket_name=pocket_name,
                        movements=len(movements),
                        reason="missing_parent" if pocket is None else "fixed_pocket",
                    )
                )
                continue

            for movement in movements:
                try:
                    movement.restore_from_orphaned(account.id, pocket.id)
                except ValidationError as exc:
                    logger.warning(
                        "movement.restore_rejected",
                        extra={
                            "extra_fields": {
                                "movement_id": str(movement.id),
                                "reason": exc.detail,
                            }
                        },
                    )
                    report.failed += 1
                    continue
                await repos.movements.update(movement, user_id)
                report.affected.add_movement(movement)
                report.restored += 1

    logger.info(
        "movement.restore_completed",
        extra={
            "extra_fields": {
                "user_id": str(user_id),
                "restored": report.restored,
                "failed": report.failed,
                "unmatched_groups": len(report.unmatched),
            }
        },
    )
    return report
