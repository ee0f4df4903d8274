"""
In-memory ERC-1155 style token with redemption minting.
"""

import logging
from typing import Dict, Sequence, Set, Tuple

from redeemables.core.exceptions import TokenError
from redeemables.core.models import (
    ItemType,
    RedemptionContext,
    SpentItem,
    is_null_address,
    same_address,
)
from redeemables.tokens.directory import Directory
from redeemables.tokens.traits import DynamicTraits


logger = logging.getLogger(__name__)

ERC1155_RECEIVED       = bytes.fromhex("f23a6e61")
ERC1155_BATCH_RECEIVED = bytes.fromhex("bc197c81")


class RedeemableERC1155(DynamicTraits):

    item_type = ItemType.SEMI_FUNGIBLE

    def __init__(self, address: str, directory: Directory, owner: str, name: str = "") -> None:
        self.address   = address
        self.name      = name or address
        self.owner     = owner
        self.directory = directory
        self.journal   = directory.journal
        self._balances:  Dict[Tuple[int, str], int] = {}
        self._operators: Dict[str, Set[str]]        = {}
        self._minters:   Set[str]                   = set()
        self._next_id    = 1
        self._init_traits()
        directory.register(self)

    # ── Reads ─────────────────────────────────────────────────

    def balance_of(self, holder: str, token_id: int) -> int:
        return self._balances.get((token_id, holder.lower()), 0)

    def is_approved_for_all(self, holder: str, operator: str) -> bool:
        return operator.lower() in self._operators.get(holder.lower(), set())

    # ── Admin ─────────────────────────────────────────────────

    def set_redeemables_contract(self, caller: str, minter: str, allowed: bool = True) -> None:
        self._require_owner(caller)
        if allowed:
            self._minters.add(minter.lower())
        else:
            self._minters.discard(minter.lower())

    def mint(self, caller: str, to: str, token_id: int, amount: int) -> None:
        self._require_owner(caller)
        self._credit(to, token_id, amount)

    # ── Transfers ─────────────────────────────────────────────

    def set_approval_for_all(self, holder: str, operator: str, approved: bool) -> None:
        operators = self._operators.setdefault(holder.lower(), set())
        was_approved = operator.lower() in operators
        if approved:
            operators.add(operator.lower())
        else:
            operators.discard(operator.lower())
        self.journal.record_undo(
            lambda: (operators.add if was_approved else operators.discard)(operator.lower())
        )

    def transfer_from(
        self, operator: str, from_: str, to: str, token_id: int, amount: int,
    ) -> None:
        self._require_operator(operator, from_)
        if is_null_address(to):
            raise TokenError("Transfer to the zero address")
        self._debit(from_, token_id, amount)
        self._credit(to, token_id, amount)

    def safe_transfer_from(
        self, operator: str, from_: str, to: str, token_id: int, amount: int, data: bytes = b"",
    ) -> None:
        with self.journal.atomic():
            self.transfer_from(operator, from_, to, token_id, amount)
            receiver = self.directory.resolve(to)
            if receiver is not None and hasattr(receiver, "on_erc1155_received"):
                selector = receiver.on_erc1155_received(
                    self.address, operator, from_, token_id, amount, data,
                )
                if selector != ERC1155_RECEIVED:
                    raise TokenError("Receiver rejected ERC1155 transfer", {"to": to})

    def safe_batch_transfer_from(
        self,
        operator:  str,
        from_:     str,
        to:        str,
        token_ids: Sequence[int],
        amounts:   Sequence[int],
        data:      bytes = b"",
    ) -> None:
        if len(token_ids) != len(amounts):
            raise TokenError("ids and amounts length mismatch")
        with self.journal.atomic():
            for token_id, amount in zip(token_ids, amounts):
                self.transfer_from(operator, from_, to, token_id, amount)
            receiver = self.directory.resolve(to)
            if receiver is not None and hasattr(receiver, "on_erc1155_batch_received"):
                selector = receiver.on_erc1155_batch_received(
                    self.address, operator, from_, list(token_ids), list(amounts), data,
                )
                if selector != ERC1155_BATCH_RECEIVED:
                    raise TokenError("Receiver rejected ERC1155 batch transfer", {"to": to})

    def burn(self, operator: str, holder: str, token_id: int, amount: int) -> None:
        self._require_operator(operator, holder)
        self._debit(holder, token_id, amount)

    # ── Redemption ────────────────────────────────────────────

    def mint_redemption(
        self,
        caller:      str,
        campaign_id: int,
        recipient:   str,
        item:        SpentItem,
        context:     RedemptionContext,
    ) -> int:
        if caller.lower() not in self._minters:
            raise TokenError("Caller may not mint redemptions", {"caller": caller})
        if item.item_type.has_criteria():
            token_id = self._next_id
        else:
            token_id = item.identifier
        fresh = not self.get_traits(token_id)
        self._credit(recipient, token_id, item.amount)
        if fresh:
            self._record_redemption_traits(token_id, campaign_id, context)
        if token_id >= self._next_id:
            previous_next = self._next_id
            self._next_id = token_id + 1
            self.journal.record_undo(lambda: setattr(self, "_next_id", previous_next))
        logger.debug(
            "%s minted %d x #%d to %s for campaign %d",
            self.name, item.amount, token_id, recipient, campaign_id,
        )
        return token_id

    # ── Internal ──────────────────────────────────────────────

    def _require_owner(self, caller: str) -> None:
        if not same_address(caller, self.owner):
            raise TokenError("Caller is not the token owner", {"caller": caller})

    def _require_operator(self, operator: str, holder: str) -> None:
        if not (same_address(operator, holder) or self.is_approved_for_all(holder, operator)):
            raise TokenError("Operator not approved", {"operator": operator})

    def _credit(self, holder: str, token_id: int, amount: int) -> None:
        if is_null_address(holder):
            raise TokenError("Mint to the zero address")
        if amount <= 0:
            raise TokenError("Amount must be positive", {"amount": amount})
        key = (token_id, holder.lower())
        self._balances[key] = self._balances.get(key, 0) + amount
        self.journal.record_undo(lambda: self._adjust(key, -amount))

    def _debit(self, holder: str, token_id: int, amount: int) -> None:
        key = (token_id, holder.lower())
        balance = self._balances.get(key, 0)
        if amount <= 0 or balance < amount:
            raise TokenError(
                "Insufficient balance",
                {"token_id": token_id, "balance": balance, "amount": amount},
            )
        self._balances[key] = balance - amount
        self.journal.record_undo(lambda: self._adjust(key, amount))

    def _adjust(self, key: Tuple[int, str], delta: int) -> None:
        self._balances[key] = self._balances.get(key, 0) + delta
