"""
Notification facts published by the offerer.

Events are immutable facts. They are published only after the call that
produced them has fully committed.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from redeemables.core.canonical import canonical_hash
from redeemables.core.models import CampaignParams, SpentItem


@dataclass(frozen=True)
class Event:
    event_id: str = field(default_factory=lambda: f"evt-{uuid.uuid4()}", compare=False)

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def body(self) -> Dict[str, Any]:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        data = self.body()
        data["event_type"] = self.event_type
        data["event_id"]   = self.event_id
        return data

    def digest(self) -> str:
        """Content digest. Excludes event_id so equal facts hash equally."""
        data = self.body()
        data["event_type"] = self.event_type
        return canonical_hash(data)


@dataclass(frozen=True)
class CampaignUpdated(Event):
    """Carries the resolved, stored state after the update."""
    campaign_id: int = 0
    params:      CampaignParams = field(default_factory=CampaignParams.empty)
    uri:         str = ""

    def body(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "params":      self.params.to_dict(),
            "uri":         self.uri,
        }


@dataclass(frozen=True)
class Redemption(Event):
    fulfiller:       str = ""
    campaign_id:     int = 0
    spent:           Tuple[SpentItem, ...] = ()
    received:        Tuple[SpentItem, ...] = ()
    redemption_hash: bytes = b""

    def body(self) -> Dict[str, Any]:
        return {
            "fulfiller":       self.fulfiller,
            "campaign_id":     self.campaign_id,
            "spent":           [s.to_dict() for s in self.spent],
            "received":        [r.to_dict() for r in self.received],
            "redemption_hash": self.redemption_hash.hex(),
        }
