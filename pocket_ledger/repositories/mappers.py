"""Mapper functions to convert between the Movement entity and its ORM row.

Only movements have a separate domain entity; accounts, pockets and
sub-pockets are handled as ORM records throughout.
"""

import uuid

from pocket_ledger.domain.movement import Movement
from pocket_ledger.models import Movement as ORMMovement


def movement_to_domain(row: ORMMovement) -> Movement:
    """Convert a movements row to a domain Movement (re-validating it)."""
    return Movement(
        id=row.id,
        type=row.type,
        account_id=row.account_id,
        pocket_id=row.pocket_id,
        amount=row.amount,
        displayed_date=row.displayed_date,
        notes=row.notes,
        sub_pocket_id=row.sub_pocket_id,
        is_pending=row.is_pending,
        is_orphaned=row.is_orphaned,
        orphaned_account_name=row.orphaned_account_name,
        orphaned_account_currency=row.orphaned_account_currency,
        orphaned_pocket_name=row.orphaned_pocket_name,
        created_at=row.created_at,
    )


def movement_to_orm(movement: Movement, user_id: uuid.UUID) -> ORMMovement:
    """Build a new movements row for the given owner."""
    row = ORMMovement(id=movement.id, user_id=user_id)
    apply_movement(row, movement)
    return row


def apply_movement(row: ORMMovement, movement: Movement) -> None:
    """Copy every mutable field of the entity onto an existing row."""
    row.type = movement.type.value
    row.account_id = movement.account_id
    row.pocket_id = movement.pocket_id
    row.sub_pocket_id = movement.sub_pocket_id
    row.amount = movement.amount
    row.displayed_date = movement.displayed_date
    row.notes = movement.notes
    row.is_pending = movement.is_pending
    row.is_orphaned = movement.is_orphaned
    row.orphaned_account_name = movement.orphaned_account_name
    row.orphaned_account_currency = movement.orphaned_account_currency
    row.orphaned_pocket_name = movement.orphaned_pocket_name
