"""
Transfer-triggered redemption.

A holder redeems by safe-transferring tokens straight to the offerer with
the context blob as transfer data. The token contract calls one of the
hooks below (`caller` is the token's address); each hook:

    1. packages the transfer as a RedemptionRequest
       (fulfiller = previous holder, maximum_spent = transferred items)
    2. evaluates it in APPLY mode
    3. forwards the received tokens to the first consideration recipient
       whose token is the calling token
    4. returns the receiver acknowledgement selector

Steps 2 and 3 run in one journal block under the campaign guard. If the
forward fails the redemption is undone with it.

A transfer carries no criteria proof, so a campaign whose consideration
is committed to a criteria set (non-wildcard) rejects it.
"""

import logging
from typing import TYPE_CHECKING, List, Sequence

from redeemables.core.exceptions import (
    ConsiderationRecipientNotFound,
    RedeemMismatchedLengths,
    RedemptionError,
)
from redeemables.core.models import (
    CampaignParams,
    EvaluationMode,
    ItemType,
    SpentItem,
    same_address,
)
from redeemables.tokens.erc721 import ERC721_RECEIVED
from redeemables.tokens.erc1155 import ERC1155_BATCH_RECEIVED, ERC1155_RECEIVED

if TYPE_CHECKING:
    from redeemables.offerer import RedeemablesOfferer


logger = logging.getLogger(__name__)


def find_consideration_recipient(params: CampaignParams, token: str) -> str:
    """Recipient of the first consideration item for `token`."""
    for item in params.consideration:
        if same_address(item.token, token):
            return item.recipient
    raise ConsiderationRecipientNotFound(
        "No consideration item for token",
        {"token": token},
    )


class TransferReceiver:

    def __init__(self, offerer: "RedeemablesOfferer") -> None:
        self.offerer = offerer

    def on_erc721_received(
        self, caller: str, operator: str, from_: str, token_id: int, data: bytes,
    ) -> bytes:
        spent = [SpentItem(ItemType.NON_FUNGIBLE, caller, token_id, 1)]
        self._redeem_and_forward(caller, from_, spent, data)
        return ERC721_RECEIVED

    def on_erc1155_received(
        self, caller: str, operator: str, from_: str, token_id: int, value: int, data: bytes,
    ) -> bytes:
        spent = [SpentItem(ItemType.SEMI_FUNGIBLE, caller, token_id, value)]
        self._redeem_and_forward(caller, from_, spent, data)
        return ERC1155_RECEIVED

    def on_erc1155_batch_received(
        self,
        caller:    str,
        operator:  str,
        from_:     str,
        token_ids: Sequence[int],
        values:    Sequence[int],
        data:      bytes,
    ) -> bytes:
        if len(token_ids) != len(values):
            raise RedeemMismatchedLengths(
                "ids and values differ in length",
                {"ids": len(token_ids), "values": len(values)},
            )
        spent = [
            SpentItem(ItemType.SEMI_FUNGIBLE, caller, token_id, value)
            for token_id, value in zip(token_ids, values)
        ]
        self._redeem_and_forward(caller, from_, spent, data)
        return ERC1155_BATCH_RECEIVED

    # ── Internal ──────────────────────────────────────────────

    def _redeem_and_forward(
        self, token: str, fulfiller: str, spent: List[SpentItem], data: bytes,
    ) -> None:
        offerer = self.offerer
        request = offerer.build_request(token, fulfiller, (), spent, data)
        with offerer.lock, offerer.campaign_guard(request.campaign_id):
            with offerer.store.journal.atomic():
                offerer.validator.evaluate(request, EvaluationMode.APPLY)
                params = offerer.store.get(request.campaign_id).params
                recipient = find_consideration_recipient(params, token)
                self._forward(token, recipient, spent)
        logger.info(
            "Campaign %d: %d transferred item(s) from %s forwarded to %s",
            request.campaign_id, len(spent), fulfiller, recipient,
        )

    def _forward(self, token: str, recipient: str, spent: List[SpentItem]) -> None:
        contract = self.offerer.directory.resolve(token)
        if contract is None:
            raise RedemptionError("Received token is not registered", {"token": token})
        holder = self.offerer.address
        for item in spent:
            if item.item_type == ItemType.NON_FUNGIBLE:
                contract.transfer_from(holder, holder, recipient, item.identifier)
            else:
                contract.transfer_from(holder, holder, recipient, item.identifier, item.amount)
