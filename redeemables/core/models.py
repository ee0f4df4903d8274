"""
redeemables/core/models.py

Redeemables Data Model

Item descriptors (what a campaign is configured with), realized items
(what actually moves), campaign configuration and the per-call request.

Serialization contract:
    to_dict()   — JSON-primitive dict. Integers stay integers, bytes become
                  lowercase hex, enums become their integer value.
    from_dict() — THE ONLY deserialization path for each type.

Descriptors stored inside a campaign are frozen dataclasses. Sequences are
held as tuples so a stored CampaignParams can never be mutated in place.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Tuple


ZERO_ADDRESS = "0x" + "0" * 40
ZERO_HASH    = b"\x00" * 32

# Criteria value that admits any identifier.
WILDCARD_CRITERIA = 0


def is_null_address(address: Optional[str]) -> bool:
    """True for None, "" and the all-zero address (any hex case)."""
    if not address:
        return True
    return address.lower() == ZERO_ADDRESS


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address equality. Two null addresses are equal."""
    if is_null_address(a) or is_null_address(b):
        return is_null_address(a) and is_null_address(b)
    return a.lower() == b.lower()


# ─────────────────────────────────────────────────────────────
# Item Types
# ─────────────────────────────────────────────────────────────

class ItemType(IntEnum):
    """
    Tradable item kinds. Ordered: criteria variants compare greater than
    every concrete kind, so `item_type >= NON_FUNGIBLE_WITH_CRITERIA`
    identifies an unresolved item.
    """
    NATIVE                      = 0
    FUNGIBLE                    = 1
    NON_FUNGIBLE                = 2
    SEMI_FUNGIBLE               = 3
    NON_FUNGIBLE_WITH_CRITERIA  = 4
    SEMI_FUNGIBLE_WITH_CRITERIA = 5

    def has_criteria(self) -> bool:
        return self >= ItemType.NON_FUNGIBLE_WITH_CRITERIA

    def without_criteria(self) -> "ItemType":
        """Concrete counterpart of a criteria type. Identity otherwise."""
        if self == ItemType.NON_FUNGIBLE_WITH_CRITERIA:
            return ItemType.NON_FUNGIBLE
        if self == ItemType.SEMI_FUNGIBLE_WITH_CRITERIA:
            return ItemType.SEMI_FUNGIBLE
        return self

    def is_mintable(self) -> bool:
        return self != ItemType.NATIVE


class EvaluationMode(Enum):
    """How a redemption evaluation is allowed to touch state."""
    SIMULATE = "simulate"
    APPLY    = "apply"


# ─────────────────────────────────────────────────────────────
# Descriptors
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OfferItem:
    """An item the campaign gives out on redemption."""
    item_type:              ItemType
    token:                  str
    identifier_or_criteria: int
    start_amount:           int
    end_amount:             int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_type":              int(self.item_type),
            "token":                  self.token,
            "identifier_or_criteria": self.identifier_or_criteria,
            "start_amount":           self.start_amount,
            "end_amount":             self.end_amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OfferItem":
        start = int(data.get("start_amount", data.get("amount", 1)))
        return cls(
            item_type=              _parse_item_type(data["item_type"]),
            token=                  data["token"],
            identifier_or_criteria= _parse_int(data.get("identifier_or_criteria", 0)),
            start_amount=           start,
            end_amount=             int(data.get("end_amount", start)),
        )


@dataclass(frozen=True)
class ConsiderationItem:
    """An item that must be surrendered, and who receives it."""
    item_type:              ItemType
    token:                  str
    identifier_or_criteria: int
    start_amount:           int
    end_amount:             int
    recipient:              Optional[str]

    def requires_proof(self) -> bool:
        """A criteria item committed to a set rather than the wildcard."""
        return (
            self.item_type.has_criteria()
            and self.identifier_or_criteria != WILDCARD_CRITERIA
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_type":              int(self.item_type),
            "token":                  self.token,
            "identifier_or_criteria": self.identifier_or_criteria,
            "start_amount":           self.start_amount,
            "end_amount":             self.end_amount,
            "recipient":              self.recipient,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsiderationItem":
        start = int(data.get("start_amount", data.get("amount", 1)))
        return cls(
            item_type=              _parse_item_type(data["item_type"]),
            token=                  data["token"],
            identifier_or_criteria= _parse_int(data.get("identifier_or_criteria", 0)),
            start_amount=           start,
            end_amount=             int(data.get("end_amount", start)),
            recipient=              data.get("recipient"),
        )


# ─────────────────────────────────────────────────────────────
# Realized Items
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SpentItem:
    """A concrete item (identifier already resolved)."""
    item_type:  ItemType
    token:      str
    identifier: int
    amount:     int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_type":  int(self.item_type),
            "token":      self.token,
            "identifier": self.identifier,
            "amount":     self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpentItem":
        return cls(
            item_type=  _parse_item_type(data["item_type"]),
            token=      data["token"],
            identifier= _parse_int(data.get("identifier", 0)),
            amount=     int(data.get("amount", 1)),
        )


@dataclass(frozen=True)
class ReceivedItem:
    item_type:  ItemType
    token:      str
    identifier: int
    amount:     int
    recipient:  str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_type":  int(self.item_type),
            "token":      self.token,
            "identifier": self.identifier,
            "amount":     self.amount,
            "recipient":  self.recipient,
        }


# ─────────────────────────────────────────────────────────────
# Campaign
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CampaignParams:
    """
    Campaign configuration.

    Invariants are checked by CampaignRegistry.upsert(), not here, so a
    malformed params object can be built and then rejected with the
    precise configuration error.
    """
    offer:                   Tuple[OfferItem, ...]
    consideration:           Tuple[ConsiderationItem, ...]
    start_time:              int
    end_time:                int
    max_total_redemptions:   int
    manager:                 Optional[str]
    signer:                  Optional[str] = None

    def __post_init__(self) -> None:
        # Accept lists from callers, store tuples.
        object.__setattr__(self, "offer", tuple(self.offer))
        object.__setattr__(self, "consideration", tuple(self.consideration))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offer":                 [o.to_dict() for o in self.offer],
            "consideration":         [c.to_dict() for c in self.consideration],
            "signer":                self.signer,
            "start_time":            self.start_time,
            "end_time":              self.end_time,
            "max_total_redemptions": self.max_total_redemptions,
            "manager":               self.manager,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CampaignParams":
        return cls(
            offer=                 tuple(OfferItem.from_dict(o) for o in data.get("offer", [])),
            consideration=         tuple(
                ConsiderationItem.from_dict(c) for c in data.get("consideration", [])
            ),
            start_time=            int(data.get("start_time", 0)),
            end_time=              int(data.get("end_time", 0)),
            max_total_redemptions= int(data.get("max_total_redemptions", 0)),
            manager=               data.get("manager"),
            signer=                data.get("signer"),
        )

    @classmethod
    def empty(cls) -> "CampaignParams":
        """Zero-valued params returned for an id that was never issued."""
        return cls(
            offer=(),
            consideration=(),
            start_time=0,
            end_time=0,
            max_total_redemptions=0,
            manager=None,
            signer=None,
        )


@dataclass
class Campaign:
    """Stored campaign record. Owned by CampaignStore."""
    campaign_id:       int
    params:            CampaignParams
    uri:               str = ""
    total_redemptions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id":       self.campaign_id,
            "params":            self.params.to_dict(),
            "uri":               self.uri,
            "total_redemptions": self.total_redemptions,
        }


# ─────────────────────────────────────────────────────────────
# Request / Context
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RedemptionContext:
    """Passed opaquely to mint callbacks. `spent` is what was burned."""
    spent: Tuple[SpentItem, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"spent": [s.to_dict() for s in self.spent]}


@dataclass(frozen=True)
class RedemptionRequest:
    """
    One proposed exchange. Built per call, never persisted.

    `caller` is the identity that invoked the entry point (the settlement
    protocol, or a token contract for transfer-triggered redemptions).
    """
    caller:           str
    fulfiller:        str
    minimum_received: Tuple[SpentItem, ...]
    maximum_spent:    Tuple[SpentItem, ...]
    campaign_id:      int
    redemption_hash:  bytes = ZERO_HASH
    salt:             Optional[bytes] = None
    signature:        Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "minimum_received", tuple(self.minimum_received))
        object.__setattr__(self, "maximum_spent", tuple(self.maximum_spent))

    def context(self) -> RedemptionContext:
        return RedemptionContext(spent=self.maximum_spent)


@dataclass(frozen=True)
class RedemptionOutcome:
    """What an admissible evaluation hands back to the settlement layer."""
    offer:         Tuple[SpentItem, ...]
    consideration: Tuple[ReceivedItem, ...]

    def __iter__(self):
        # Allows `offer, consideration = outcome`.
        yield self.offer
        yield self.consideration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offer":         [o.to_dict() for o in self.offer],
            "consideration": [c.to_dict() for c in self.consideration],
        }


# ─────────────────────────────────────────────────────────────
# Parsing helpers
# ─────────────────────────────────────────────────────────────

def _parse_item_type(value: Any) -> ItemType:
    if isinstance(value, ItemType):
        return value
    if isinstance(value, str) and not value.isdigit():
        try:
            return ItemType[value.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown item_type {value!r}. Valid: {[t.name for t in ItemType]}"
            ) from None
    return ItemType(int(value))


def _parse_int(value: Any) -> int:
    """Integers may be given as ints, decimal strings or 0x-prefixed hex."""
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.lower().startswith("0x"):
        return int(value, 16)
    return int(value)

