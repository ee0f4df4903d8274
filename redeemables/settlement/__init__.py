"""
Redeemables Settlement Side

Everything that happens before and around the offerer call:
- criteria commitments and proof resolution
- an in-process settlement protocol that drives generate_order

Criteria are always resolved here. The engine never sees an unresolved
item.
"""

from redeemables.settlement.criteria import (
    WILDCARD_CRITERIA,
    CriteriaResolution,
    CriteriaResolver,
    merkle_proof,
    merkle_root,
    verify_proof,
)
from redeemables.settlement.protocol import SettlementProtocol

__all__ = [
    "WILDCARD_CRITERIA",
    "CriteriaResolution",
    "CriteriaResolver",
    "SettlementProtocol",
    "merkle_proof",
    "merkle_root",
    "verify_proof",
]
