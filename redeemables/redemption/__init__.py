"""
Redeemables Redemption Engine

Admission control for redemptions, signer authorization and mint
dispatch. One evaluation path serves both preview and apply.
"""

from redeemables.redemption.dispatcher import MintDispatcher
from redeemables.redemption.signature import (
    SignatureDomain,
    SignatureGuard,
    redemption_digest,
    sign_redemption,
)
from redeemables.redemption.validator import PREDICATES, RedemptionValidator

__all__ = [
    "MintDispatcher",
    "PREDICATES",
    "RedemptionValidator",
    "SignatureDomain",
    "SignatureGuard",
    "redemption_digest",
    "sign_redemption",
]
