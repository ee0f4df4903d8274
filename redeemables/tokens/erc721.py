"""
In-memory ERC-721 style token with redemption minting.

Every state change records an undo with the directory journal, so a
redemption that aborts after a transfer or mint leaves balances untouched.
"""

import logging
from typing import Dict, Optional, Set

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

ERC721_RECEIVED = bytes.fromhex("150b7a02")


class RedeemableERC721(DynamicTraits):
    """
    Minimal ERC-721: ownership, operator approvals, safe transfers with
    receiver callbacks, burning, and mint_redemption for authorized
    redemption contracts.
    """

    item_type = ItemType.NON_FUNGIBLE

    def __init__(self, address: str, directory: Directory, owner: str, name: str = "") -> None:
        self.address   = address
        self.name      = name or address
        self.owner     = owner
        self.directory = directory
        self.journal   = directory.journal
        self._owners:    Dict[int, str]      = {}
        self._operators: Dict[str, Set[str]] = {}
        self._minters:   Set[str]            = set()
        self._next_id    = 1
        self._init_traits()
        directory.register(self)

    # ── Reads ─────────────────────────────────────────────────

    def owner_of(self, token_id: int) -> str:
        try:
            return self._owners[token_id]
        except KeyError:
            raise TokenError("Token does not exist", {"token_id": token_id}) from None

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def balance_of(self, holder: str) -> int:
        return sum(1 for o in self._owners.values() if same_address(o, holder))

    def is_approved_for_all(self, holder: str, operator: str) -> bool:
        return operator.lower() in self._operators.get(holder.lower(), set())

    # ── Admin ─────────────────────────────────────────────────

    def set_redeemables_contract(self, caller: str, minter: str, allowed: bool = True) -> None:
        """Allow (or revoke) a redemption contract to call mint_redemption."""
        self._require_owner(caller)
        if allowed:
            self._minters.add(minter.lower())
        else:
            self._minters.discard(minter.lower())

    def mint(self, caller: str, to: str, token_id: Optional[int] = None) -> int:
        """Owner-only plain mint, used to seed balances."""
        self._require_owner(caller)
        return self._mint(to, token_id)

    # ── Transfers ─────────────────────────────────────────────

    def set_approval_for_all(self, holder: str, operator: str, approved: bool) -> None:
        operators = self._operators.setdefault(holder.lower(), set())
        was_approved = operator.lower() in operators
        if approved:
            operators.add(operator.lower())
        else:
            operators.discard(operator.lower())
        self.journal.record_undo(
            lambda: self._restore_approval(holder, operator, was_approved)
        )

    def transfer_from(self, operator: str, from_: str, to: str, token_id: int) -> None:
        current = self.owner_of(token_id)
        if not same_address(current, from_):
            raise TokenError("Transfer from incorrect owner", {"token_id": token_id})
        if not (same_address(operator, from_) or self.is_approved_for_all(from_, operator)):
            raise TokenError("Operator not approved", {"operator": operator})
        if is_null_address(to):
            raise TokenError("Transfer to the zero address")
        self._owners[token_id] = to
        self.journal.record_undo(lambda: self._owners.__setitem__(token_id, current))

    def safe_transfer_from(
        self, operator: str, from_: str, to: str, token_id: int, data: bytes = b"",
    ) -> None:
        """Transfer, then call the receiver hook. A failing hook undoes the transfer."""
        with self.journal.atomic():
            self.transfer_from(operator, from_, to, token_id)
            receiver = self.directory.resolve(to)
            if receiver is not None and hasattr(receiver, "on_erc721_received"):
                selector = receiver.on_erc721_received(self.address, operator, from_, token_id, data)
                if selector != ERC721_RECEIVED:
                    raise TokenError("Receiver rejected ERC721 transfer", {"to": to})

    def burn(self, operator: str, token_id: int) -> None:
        current = self.owner_of(token_id)
        if not (same_address(operator, current) or self.is_approved_for_all(current, operator)):
            raise TokenError("Operator not approved", {"operator": operator})
        del self._owners[token_id]
        self.journal.record_undo(lambda: self._owners.__setitem__(token_id, current))

    # ── Redemption ────────────────────────────────────────────

    def mint_redemption(
        self,
        caller:      str,
        campaign_id: int,
        recipient:   str,
        item:        SpentItem,
        context:     RedemptionContext,
    ) -> int:
        """
        Mint one token for a redemption. A criteria offer item (symbolic
        identifier) takes the next free id; a concrete one mints that id.
        """
        if caller.lower() not in self._minters:
            raise TokenError("Caller may not mint redemptions", {"caller": caller})
        token_id = None if item.item_type.has_criteria() else item.identifier
        token_id = self._mint(recipient, token_id)
        self._record_redemption_traits(token_id, campaign_id, context)
        logger.debug("%s minted #%d to %s for campaign %d", self.name, token_id, recipient, campaign_id)
        return token_id

    # ── Internal ──────────────────────────────────────────────

    def _require_owner(self, caller: str) -> None:
        if not same_address(caller, self.owner):
            raise TokenError("Caller is not the token owner", {"caller": caller})

    def _mint(self, to: str, token_id: Optional[int]) -> int:
        if is_null_address(to):
            raise TokenError("Mint to the zero address")
        if token_id is None:
            while self._next_id in self._owners:
                self._next_id += 1
            token_id = self._next_id
        if token_id in self._owners:
            raise TokenError("Token already minted", {"token_id": token_id})
        previous_next = self._next_id
        self._owners[token_id] = to
        self._next_id = max(self._next_id, token_id + 1)
        self.journal.record_undo(lambda: self._undo_mint(token_id, previous_next))
        return token_id

    def _undo_mint(self, token_id: int, previous_next: int) -> None:
        self._owners.pop(token_id, None)
        self._next_id = previous_next

    def _restore_approval(self, holder: str, operator: str, approved: bool) -> None:
        operators = self._operators.setdefault(holder.lower(), set())
        if approved:
            operators.add(operator.lower())
        else:
            operators.discard(operator.lower())
