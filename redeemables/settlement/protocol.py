"""
In-process settlement protocol.

Stands in for the external order-settlement contract that calls the
offerer. One fulfillment:

    1. read the campaign's consideration descriptors
    2. resolve criteria into concrete spent items      (no engine call yet)
    3. generate_order() as the trusted caller           (APPLY)
    4. move each consideration item from the fulfiller to its recipient
    5. ratify_order()

Steps 3-5 run in one journal block. A failed transfer undoes the
redemption, the counter bump and the mints with it.
"""

import logging
from typing import Sequence

from redeemables.core.context import decode_context
from redeemables.core.exceptions import TokenError
from redeemables.core.models import (
    ItemType,
    ReceivedItem,
    RedemptionOutcome,
    SpentItem,
)
from redeemables.offerer import RATIFY_ORDER_MAGIC, RedeemablesOfferer
from redeemables.settlement.criteria import CriteriaResolution, CriteriaResolver
from redeemables.tokens.directory import Directory


logger = logging.getLogger(__name__)


class SettlementProtocol:

    def __init__(self, address: str, directory: Directory) -> None:
        self.address   = address
        self.directory = directory
        self.journal   = directory.journal
        self.resolver  = CriteriaResolver()

    def resolve_spent(
        self,
        offerer:     RedeemablesOfferer,
        context:     bytes,
        resolutions: Sequence[CriteriaResolution] = (),
    ) -> Sequence[SpentItem]:
        campaign_id = decode_context(context).campaign_id
        params, _, _ = offerer.get_campaign(campaign_id)
        return self.resolver.resolve_all(params.consideration, resolutions)

    def preview(
        self,
        fulfiller:        str,
        offerer:          RedeemablesOfferer,
        context:          bytes,
        resolutions:      Sequence[CriteriaResolution] = (),
        minimum_received: Sequence[SpentItem] = (),
    ) -> RedemptionOutcome:
        spent = self.resolve_spent(offerer, context, resolutions)
        return offerer.preview_order(self.address, fulfiller, minimum_received, spent, context)

    def fulfill(
        self,
        fulfiller:        str,
        offerer:          RedeemablesOfferer,
        context:          bytes,
        resolutions:      Sequence[CriteriaResolution] = (),
        minimum_received: Sequence[SpentItem] = (),
    ) -> RedemptionOutcome:
        """
        Settle one redemption for `fulfiller`. The fulfiller must have
        approved this protocol as operator on every consideration token.

        Raises:
            CriteriaError   — before the offerer is called
            RedemptionError — from the offerer; nothing changed
            TokenError      — a consideration transfer failed; nothing changed
        """
        spent = self.resolve_spent(offerer, context, resolutions)
        with self.journal.atomic():
            outcome = offerer.generate_order(
                self.address, fulfiller, minimum_received, spent, context,
            )
            for item in outcome.consideration:
                self._transfer(fulfiller, item)
            magic = offerer.ratify_order(outcome.offer, outcome.consideration, context)
            if magic != RATIFY_ORDER_MAGIC:
                raise TokenError("Offerer did not ratify order", {"offerer": offerer.address})
        logger.info(
            "Settled %d consideration item(s) from %s via %s",
            len(outcome.consideration), fulfiller, offerer.address,
        )
        return outcome

    def _transfer(self, fulfiller: str, item: ReceivedItem) -> None:
        token = self.directory.resolve(item.token)
        if token is None:
            raise TokenError("Consideration token is not registered", {"token": item.token})
        kind = item.item_type.without_criteria()
        if kind == ItemType.NON_FUNGIBLE:
            token.transfer_from(self.address, fulfiller, item.recipient, item.identifier)
        elif kind == ItemType.SEMI_FUNGIBLE:
            token.transfer_from(
                self.address, fulfiller, item.recipient, item.identifier, item.amount,
            )
        else:
            raise TokenError(
                "Unsupported consideration item type",
                {"item_type": kind.name},
            )
