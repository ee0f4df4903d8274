"""
Mint dispatch for admitted redemptions.

One mint_redemption() call per offer item — never per spent item. The
token call either succeeds or raises; the exception propagates and the
enclosing journal block undoes the whole redemption.
"""

import logging
from typing import List, Optional, Sequence

from redeemables.core.exceptions import MintDispatchError
from redeemables.core.models import RedemptionContext, SpentItem
from redeemables.tokens.directory import Directory


logger = logging.getLogger(__name__)


class MintDispatcher:

    def __init__(self, directory: Directory, minter: str) -> None:
        self.directory = directory
        self.minter    = minter

    def dispatch(
        self,
        campaign_id: int,
        recipient:   str,
        offer:       Sequence[SpentItem],
        context:     RedemptionContext,
    ) -> List[Optional[int]]:
        """
        Returns:
            Minted identifier per offer item (None for skipped NATIVE items).
        """
        minted: List[Optional[int]] = []
        for item in offer:
            if not item.item_type.is_mintable():
                logger.info("Campaign %d: native offer item is not minted", campaign_id)
                minted.append(None)
                continue
            token = self.directory.resolve(item.token)
            if token is None or not hasattr(token, "mint_redemption"):
                raise MintDispatchError(
                    "Offer token cannot mint redemptions",
                    {"token": item.token},
                )
            minted.append(
                token.mint_redemption(self.minter, campaign_id, recipient, item, context)
            )
        return minted
