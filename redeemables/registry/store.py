"""
Campaign storage.

CampaignStore is the only mutable shared state of the engine. It is an
injected object, never a module global: every component that needs
campaign records receives the same store instance.

Every mutation records its own undo with the journal, so a redemption
that aborts after bumping a counter leaves the store exactly as it was.
"""

import threading
from dataclasses import replace
from typing import Dict, Optional

from redeemables.core.journal import Journal
from redeemables.core.models import Campaign, CampaignParams


class CampaignStore:
    """
    In-memory campaign table keyed by campaign id.

    Ids start at 1 and increase monotonically. 0 is never stored.
    Reads return copies; the stored records are only changed through the
    methods below.
    """

    def __init__(self, journal: Optional[Journal] = None) -> None:
        self._journal   = journal or Journal()
        self._campaigns: Dict[int, Campaign] = {}
        self._next_id   = 1
        self._lock      = threading.RLock()

    @property
    def journal(self) -> Journal:
        return self._journal

    # ── Reads ─────────────────────────────────────────────────

    def get(self, campaign_id: int) -> Optional[Campaign]:
        with self._lock:
            campaign = self._campaigns.get(campaign_id)
            return replace(campaign) if campaign is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._campaigns)

    # ── Writes ────────────────────────────────────────────────

    def create(self, params: CampaignParams, uri: str) -> Campaign:
        """Store a new record under the next id."""
        with self._lock:
            campaign_id = self._next_id
            self._next_id += 1
            self._campaigns[campaign_id] = Campaign(
                campaign_id=campaign_id,
                params=params,
                uri=uri,
            )
            self._journal.record_undo(lambda: self._undo_create(campaign_id))
            return replace(self._campaigns[campaign_id])

    def update(self, campaign_id: int, params: CampaignParams, uri: Optional[str]) -> Campaign:
        """Overwrite params, and the uri when one is given."""
        with self._lock:
            campaign = self._require(campaign_id)
            previous = (campaign.params, campaign.uri)
            campaign.params = params
            if uri is not None:
                campaign.uri = uri
            self._journal.record_undo(lambda: self._restore(campaign_id, *previous))
            return replace(campaign)

    def set_uri(self, campaign_id: int, uri: str) -> Campaign:
        with self._lock:
            campaign = self._require(campaign_id)
            previous = (campaign.params, campaign.uri)
            campaign.uri = uri
            self._journal.record_undo(lambda: self._restore(campaign_id, *previous))
            return replace(campaign)

    def add_redemptions(self, campaign_id: int, count: int) -> int:
        """Bump total_redemptions. Returns the new total."""
        if count < 0:
            raise ValueError(f"redemption count must be non-negative, got {count}")
        with self._lock:
            campaign = self._require(campaign_id)
            campaign.total_redemptions += count
            self._journal.record_undo(lambda: self._undo_redemptions(campaign_id, count))
            return campaign.total_redemptions

    # ── Internal ──────────────────────────────────────────────

    def _require(self, campaign_id: int) -> Campaign:
        try:
            return self._campaigns[campaign_id]
        except KeyError:
            raise KeyError(f"campaign {campaign_id} does not exist") from None

    def _undo_create(self, campaign_id: int) -> None:
        with self._lock:
            self._campaigns.pop(campaign_id, None)
            self._next_id = campaign_id

    def _restore(self, campaign_id: int, params: CampaignParams, uri: str) -> None:
        with self._lock:
            campaign = self._campaigns[campaign_id]
            campaign.params = params
            campaign.uri = uri

    def _undo_redemptions(self, campaign_id: int, count: int) -> None:
        with self._lock:
            self._campaigns[campaign_id].total_redemptions -= count
