"""
Dynamic traits for redemption tokens.

Each token id carries a mutable key → value map. Traits written while
minting a redemption record where the token came from (campaign id and a
digest of the burned items). Those are locked on write: later changes
fail with RedemptionValuesAreImmutable. Any write that would not change
the stored value fails with TraitValueUnchanged.
"""

from typing import Any, Dict, Optional, Set, Tuple

from redeemables.core.canonical import canonical_hash
from redeemables.core.exceptions import (
    RedemptionValuesAreImmutable,
    TokenError,
    TraitValueUnchanged,
)
from redeemables.core.journal import Journal
from redeemables.core.models import RedemptionContext, same_address


TRAIT_REDEEMED_CAMPAIGN = "redemption.campaign_id"
TRAIT_REDEEMED_SPENT    = "redemption.spent_digest"

_MISSING = object()


class DynamicTraits:
    """Mixin. Host class must set `self.journal` and `self.owner`."""

    journal: Journal
    owner:   str

    def _init_traits(self) -> None:
        self._traits: Dict[Tuple[int, str], Any] = {}
        self._locked: Set[Tuple[int, str]]       = set()

    def get_trait_value(self, token_id: int, key: str) -> Optional[Any]:
        return self._traits.get((token_id, key))

    def get_traits(self, token_id: int) -> Dict[str, Any]:
        return {k: v for (tid, k), v in self._traits.items() if tid == token_id}

    def set_trait(self, caller: str, token_id: int, key: str, value: Any) -> None:
        if not same_address(caller, self.owner):
            raise TokenError("Only the token owner may set traits", {"caller": caller})
        self._write_trait(token_id, key, value)

    def _record_redemption_traits(
        self, token_id: int, campaign_id: int, context: RedemptionContext,
    ) -> None:
        self._write_trait(token_id, TRAIT_REDEEMED_CAMPAIGN, campaign_id, lock=True)
        self._write_trait(
            token_id, TRAIT_REDEEMED_SPENT, canonical_hash(context.to_dict()), lock=True,
        )

    def _write_trait(self, token_id: int, key: str, value: Any, lock: bool = False) -> None:
        slot = (token_id, key)
        if slot in self._locked:
            raise RedemptionValuesAreImmutable(
                "Redemption trait cannot be changed",
                {"token_id": token_id, "key": key},
            )
        previous = self._traits.get(slot, _MISSING)
        if previous == value:
            raise TraitValueUnchanged(
                "Trait already has this value",
                {"token_id": token_id, "key": key},
            )
        self._traits[slot] = value
        if lock:
            self._locked.add(slot)
        self.journal.record_undo(lambda: self._undo_trait(slot, previous, lock))

    def _undo_trait(self, slot: Tuple[int, str], previous: Any, was_locked: bool) -> None:
        if previous is _MISSING:
            self._traits.pop(slot, None)
        else:
            self._traits[slot] = previous
        if was_locked:
            self._locked.discard(slot)
