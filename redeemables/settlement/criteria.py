"""
redeemables/settlement/criteria.py

Criteria commitments for consideration items.

A criteria descriptor (`*_WITH_CRITERIA`) names a set of acceptable token
identifiers by its Merkle root, stored as a big-endian integer in
`identifier_or_criteria`. Criteria value 0 is the wildcard: any
identifier is accepted and no proof is needed.

Tree definition:
    leaf(id)     = SHA-256(id as 32-byte big-endian word)
    node(a, b)   = SHA-256(min(a, b) || max(a, b))      — sorted pair
    odd node     = carried up to the next level unchanged

Sorted pairs mean a proof is just the list of sibling hashes; no
left/right flags are needed.

Resolution runs on the settlement side, BEFORE the engine is called. The
engine never sees a criteria-typed spent item.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from redeemables.core.exceptions import CriteriaNotEnabledForItem, InvalidCriteriaProof
from redeemables.core.models import WILDCARD_CRITERIA, ConsiderationItem, SpentItem


_WORD = 32


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def leaf_hash(identifier: int) -> bytes:
    if identifier < 0:
        raise ValueError(f"identifier must be non-negative, got {identifier}")
    return _sha256(identifier.to_bytes(_WORD, "big"))


def _node_hash(a: bytes, b: bytes) -> bytes:
    return _sha256(a + b) if a <= b else _sha256(b + a)


def _levels(identifiers: Sequence[int]) -> List[List[bytes]]:
    if not identifiers:
        raise ValueError("cannot build a criteria tree from an empty set")
    level  = [leaf_hash(i) for i in sorted(set(identifiers))]
    levels = [level]
    while len(level) > 1:
        nxt = [_node_hash(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            nxt.append(level[-1])
        levels.append(nxt)
        level = nxt
    return levels


def merkle_root(identifiers: Sequence[int]) -> int:
    """Criteria value committing to `identifiers` (order and duplicates ignored)."""
    return int.from_bytes(_levels(identifiers)[-1][0], "big")


def merkle_proof(identifiers: Sequence[int], identifier: int) -> List[bytes]:
    """Sibling hashes from `identifier`'s leaf up to the root."""
    levels = _levels(identifiers)
    target = leaf_hash(identifier)
    try:
        index = levels[0].index(target)
    except ValueError:
        raise ValueError(f"identifier {identifier} is not in the set") from None
    proof: List[bytes] = []
    for level in levels[:-1]:
        sibling = index ^ 1
        if sibling < len(level):
            proof.append(level[sibling])
        index //= 2
    return proof


def verify_proof(criteria: int, identifier: int, proof: Sequence[bytes]) -> bool:
    """True if `identifier` is committed to by `criteria`. Never raises."""
    if criteria == WILDCARD_CRITERIA:
        return True
    if identifier < 0:
        return False
    computed = leaf_hash(identifier)
    for sibling in proof:
        if len(sibling) != _WORD:
            return False
        computed = _node_hash(computed, bytes(sibling))
    return int.from_bytes(computed, "big") == criteria


# ─────────────────────────────────────────────────────────────
# Resolution
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CriteriaResolution:
    """The fulfiller's choice for one consideration item."""
    index:      int
    identifier: int
    proof:      Tuple[bytes, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "proof", tuple(self.proof))


class CriteriaResolver:
    """
    Realizes consideration descriptors into concrete SpentItems.

    Raises:
        CriteriaNotEnabledForItem — a resolution targets a concrete item
        InvalidCriteriaProof      — a criteria item is unresolved, or its
                                    proof does not match the commitment
    """

    def resolve(
        self,
        item:       ConsiderationItem,
        resolution: Optional[CriteriaResolution] = None,
    ) -> SpentItem:
        if not item.item_type.has_criteria():
            if resolution is not None:
                raise CriteriaNotEnabledForItem(
                    "Consideration item does not use criteria",
                    {"index": resolution.index, "token": item.token},
                )
            return SpentItem(item.item_type, item.token, item.identifier_or_criteria, item.start_amount)

        if resolution is None:
            raise InvalidCriteriaProof(
                "Criteria item has no resolution",
                {"token": item.token},
            )
        if not verify_proof(item.identifier_or_criteria, resolution.identifier, resolution.proof):
            raise InvalidCriteriaProof(
                "Identifier is not part of the criteria",
                {"index": resolution.index, "identifier": resolution.identifier},
            )
        return SpentItem(
            item_type=  item.item_type.without_criteria(),
            token=      item.token,
            identifier= resolution.identifier,
            amount=     item.start_amount,
        )

    def resolve_all(
        self,
        items:       Sequence[ConsiderationItem],
        resolutions: Sequence[CriteriaResolution] = (),
    ) -> Tuple[SpentItem, ...]:
        by_index: Dict[int, CriteriaResolution] = {}
        for resolution in resolutions:
            if not 0 <= resolution.index < len(items):
                raise InvalidCriteriaProof(
                    "Resolution index out of range",
                    {"index": resolution.index, "items": len(items)},
                )
            if resolution.index in by_index:
                raise InvalidCriteriaProof(
                    "Duplicate resolution for consideration item",
                    {"index": resolution.index},
                )
            by_index[resolution.index] = resolution
        return tuple(self.resolve(item, by_index.get(i)) for i, item in enumerate(items))
