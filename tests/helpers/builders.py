"""
tests/helpers/builders.py

Builders for campaign params, spent items and context blobs.

Every builder takes keyword overrides so a test states only what it is
about. Addresses are fixed, readable 20-byte hex strings.
"""

import os
from typing import Optional, Sequence

from redeemables.core.context import encode_context
from redeemables.core.crypto import Ed25519KeyManager
from redeemables.core.models import (
    CampaignParams,
    ConsiderationItem,
    ItemType,
    OfferItem,
    SpentItem,
)
from redeemables.redemption.signature import SignatureDomain, sign_redemption


def addr(tag: str) -> str:
    """0x + tag repeated/truncated to 40 hex chars, e.g. addr("ab")."""
    return "0x" + (tag * 40)[:40]


OFFERER      = addr("0f")
SETTLEMENT   = addr("5e")
DEPLOYER     = addr("d0")
MANAGER      = addr("a1")
OTHER        = addr("b2")
FULFILLER    = addr("f1")
BURN_ADDRESS = "0x000000000000000000000000000000000000dEaD"
BURN_TOKEN   = addr("c1")
REWARD_TOKEN = addr("c2")
SFT_TOKEN    = addr("c3")

START = 1_700_000_000
END   = START + 86_400
NOW   = START + 3_600


def consideration_item(
    token:     str = BURN_TOKEN,
    criteria:  int = 0,
    item_type: ItemType = ItemType.NON_FUNGIBLE_WITH_CRITERIA,
    amount:    int = 1,
    recipient: Optional[str] = BURN_ADDRESS,
) -> ConsiderationItem:
    return ConsiderationItem(
        item_type=              item_type,
        token=                  token,
        identifier_or_criteria= criteria,
        start_amount=           amount,
        end_amount=             amount,
        recipient=              recipient,
    )


def offer_item(
    token:      str = REWARD_TOKEN,
    identifier: int = 0,
    item_type:  ItemType = ItemType.NON_FUNGIBLE_WITH_CRITERIA,
    amount:     int = 1,
) -> OfferItem:
    return OfferItem(
        item_type=              item_type,
        token=                  token,
        identifier_or_criteria= identifier,
        start_amount=           amount,
        end_amount=             amount,
    )


def campaign_params(
    offer:                 Optional[Sequence[OfferItem]] = None,
    consideration:         Optional[Sequence[ConsiderationItem]] = None,
    start_time:            int = START,
    end_time:              int = END,
    max_total_redemptions: int = 10,
    manager:               Optional[str] = MANAGER,
    signer:                Optional[str] = None,
) -> CampaignParams:
    return CampaignParams(
        offer=                 [offer_item()] if offer is None else offer,
        consideration=         [consideration_item()] if consideration is None else consideration,
        start_time=            start_time,
        end_time=              end_time,
        max_total_redemptions= max_total_redemptions,
        manager=               manager,
        signer=                signer,
    )


def spent(
    identifier: int,
    token:      str = BURN_TOKEN,
    item_type:  ItemType = ItemType.NON_FUNGIBLE,
    amount:     int = 1,
) -> SpentItem:
    return SpentItem(item_type, token, identifier, amount)


def context(campaign_id: int, redemption_hash: bytes = b"\x00" * 32) -> bytes:
    return encode_context(campaign_id, redemption_hash)


def signed_context(
    key:             Ed25519KeyManager,
    campaign_id:     int,
    maximum_spent:   Sequence[SpentItem],
    fulfiller:       str = FULFILLER,
    redemption_hash: bytes = b"\x00" * 32,
    salt:            Optional[bytes] = None,
    offerer:         str = OFFERER,
) -> bytes:
    """Context blob carrying a valid signer authorization."""
    salt = salt if salt is not None else os.urandom(32)
    signature = sign_redemption(
        key,
        SignatureDomain("Redeemables", "1.0", offerer),
        campaign_id,
        fulfiller,
        maximum_spent,
        redemption_hash,
        salt,
    )
    return encode_context(campaign_id, redemption_hash, salt, signature)
