"""In-memory redemption tokens and the address directory."""

from redeemables.tokens.directory import Directory
from redeemables.tokens.erc721 import ERC721_RECEIVED, RedeemableERC721
from redeemables.tokens.erc1155 import (
    ERC1155_BATCH_RECEIVED,
    ERC1155_RECEIVED,
    RedeemableERC1155,
)
from redeemables.tokens.traits import (
    TRAIT_REDEEMED_CAMPAIGN,
    TRAIT_REDEEMED_SPENT,
    DynamicTraits,
)

__all__ = [
    "Directory",
    "DynamicTraits",
    "ERC721_RECEIVED",
    "ERC1155_RECEIVED",
    "ERC1155_BATCH_RECEIVED",
    "RedeemableERC721",
    "RedeemableERC1155",
    "TRAIT_REDEEMED_CAMPAIGN",
    "TRAIT_REDEEMED_SPENT",
]
