"""
Which cached balances can be stale after a movement changes.

A movement only ever feeds the balances of the account, pocket and
(optionally) sub-pocket it references, so those identifiers are exactly
the dirty set. For an update the references themselves may change, and
both the old and the new parents are dirty: the old ones lose the
movement, the new ones gain it.

Orphaned movements may carry no parent ids at all; missing ids are
simply left out of the set.
"""

import uuid
from dataclasses import dataclass, field

from pocket_ledger.domain.movement import Movement


# Fields whose change alters some balance. Anything else (notes, the
# displayed date) is metadata and never triggers a cascade.
BALANCE_FIELDS = (
    "amount",
    "is_pending",
    "type",
    "account_id",
    "pocket_id",
    "sub_pocket_id",
    "is_orphaned",
)


@dataclass
class AffectedEntities:
    account_ids: set[uuid.UUID] = field(default_factory=set)
    pocket_ids: set[uuid.UUID] = field(default_factory=set)
    sub_pocket_ids: set[uuid.UUID] = field(default_factory=set)

    def add_movement(self, movement: Movement) -> "AffectedEntities":
        if movement.account_id is not None:
            self.account_ids.add(movement.account_id)
        if movement.pocket_id is not None:
            self.pocket_ids.add(movement.pocket_id)
        if movement.sub_pocket_id is not None:
            self.sub_pocket_ids.add(movement.sub_pocket_id)
        return self

    def merge(self, other: "AffectedEntities") -> "AffectedEntities":
        self.account_ids |= other.account_ids
        self.pocket_ids |= other.pocket_ids
        self.sub_pocket_ids |= other.sub_pocket_ids
        return self

    def is_empty(self) -> bool:
        return not (self.account_ids or self.pocket_ids or self.sub_pocket_ids)

    def as_log_fields(self) -> dict:
        return {
            "account_ids": sorted(str(i) for i in self.account_ids),
            "pocket_ids": sorted(str(i) for i in self.pocket_ids),
            "sub_pocket_ids": sorted(str(i) for i in self.sub_pocket_ids),
        }


def affected(movement: Movement) -> AffectedEntities:
    """Parents of a single movement state (create, delete, pending toggles)."""
    return AffectedEntities().add_movement(movement)


def affected_across_change(old: Movement, new: Movement) -> AffectedEntities:
    """Union of the parents before and after an update."""
    return AffectedEntities().add_movement(old).add_movement(new)


def requires_recalculation(old: Movement, new: Movement) -> bool:
    """True when the update touched any field that feeds a balance."""
    return any(getattr(old, name) != getattr(new, name) for name in BALANCE_FIELDS)
