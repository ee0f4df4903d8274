"""
Campaign registry: configuration and lifecycle.

Validation order for upsert (first failure wins, nothing is stored):
    1. unknown non-zero id            → InvalidCampaignId
    2. empty consideration            → NoConsiderationItems
    3. start_time > end_time          → InvalidTime
       negative max_total_redemptions → InvalidMaxTotalRedemptions
    4. caller is not stored manager   → NotManager
    5. caller is not params.manager   → NotManager
    6. null consideration recipient   → ZeroRecipient

Every successful write emits CampaignUpdated carrying the state as
STORED — not the caller's raw input (an empty uri keeps the old one).
"""

import logging
from typing import Optional, Tuple

from redeemables.core.emitter import EventEmitter
from redeemables.core.events import CampaignUpdated
from redeemables.core.exceptions import (
    InvalidCampaignId,
    InvalidMaxTotalRedemptions,
    InvalidTime,
    NoConsiderationItems,
    NotManager,
    ZeroRecipient,
)
from redeemables.core.models import CampaignParams, is_null_address, same_address
from redeemables.registry.store import CampaignStore


logger = logging.getLogger(__name__)

NEW_CAMPAIGN = 0


class CampaignRegistry:
    """Owns campaign configuration. Campaigns are never deleted."""

    def __init__(self, store: CampaignStore, emitter: Optional[EventEmitter] = None) -> None:
        self.store   = store
        self.emitter = emitter or EventEmitter(store.journal)

    def upsert(
        self,
        caller:      str,
        campaign_id: int,
        params:      CampaignParams,
        uri:         str = "",
    ) -> int:
        """
        Create (campaign_id == 0) or update a campaign.

        Returns:
            The campaign id — freshly allocated for a create.
        """
        existing = None
        if campaign_id != NEW_CAMPAIGN:
            existing = self.store.get(campaign_id)
            if existing is None:
                raise InvalidCampaignId(
                    "Campaign does not exist",
                    {"campaign_id": campaign_id},
                )

        self.validate_params(params)

        if existing is not None and not is_null_address(existing.params.manager):
            if not same_address(caller, existing.params.manager):
                raise NotManager(
                    "Caller is not the campaign manager",
                    {"campaign_id": campaign_id, "caller": caller},
                )
        if not same_address(caller, params.manager):
            raise NotManager(
                "Caller must be the manager named in params",
                {"caller": caller, "manager": params.manager},
            )

        self.validate_recipients(params)

        with self.store.journal.atomic():
            if existing is None:
                campaign = self.store.create(params, uri)
                logger.info("Campaign %d created by %s", campaign.campaign_id, caller)
            else:
                campaign = self.store.update(campaign_id, params, uri if uri else None)
                logger.info("Campaign %d updated by %s", campaign_id, caller)
            self.emitter.emit(CampaignUpdated(
                campaign_id=campaign.campaign_id,
                params=campaign.params,
                uri=campaign.uri,
            ))
        return campaign.campaign_id

    def set_uri(self, caller: str, campaign_id: int, uri: str) -> None:
        """Overwrite the uri unconditionally (empty allowed). Manager only."""
        existing = self.store.get(campaign_id)
        manager  = existing.params.manager if existing is not None else None
        if is_null_address(manager) or not same_address(caller, manager):
            raise NotManager(
                "Caller is not the campaign manager",
                {"campaign_id": campaign_id, "caller": caller},
            )
        with self.store.journal.atomic():
            campaign = self.store.set_uri(campaign_id, uri)
            self.emitter.emit(CampaignUpdated(
                campaign_id=campaign_id,
                params=campaign.params,
                uri=campaign.uri,
            ))
        logger.info("Campaign %d uri set by %s", campaign_id, caller)

    def get(self, campaign_id: int) -> Tuple[CampaignParams, str, int]:
        """
        (params, uri, total_redemptions). Zero values for an unknown id;
        existence is the validator's concern, not this accessor's.
        """
        campaign = self.store.get(campaign_id)
        if campaign is None:
            return CampaignParams.empty(), "", 0
        return campaign.params, campaign.uri, campaign.total_redemptions

    @staticmethod
    def validate_params(params: CampaignParams) -> None:
        """Manager-independent checks. Used by upsert and the `check` CLI."""
        if not params.consideration:
            raise NoConsiderationItems("Campaign must have at least one consideration item")
        if params.start_time > params.end_time:
            raise InvalidTime(
                "start_time must not be after end_time",
                {"start_time": params.start_time, "end_time": params.end_time},
            )
        if params.max_total_redemptions < 0:
            raise InvalidMaxTotalRedemptions(
                "max_total_redemptions must be non-negative",
                {"max_total_redemptions": params.max_total_redemptions},
            )

    @staticmethod
    def validate_recipients(params: CampaignParams) -> None:
        for index, item in enumerate(params.consideration):
            if is_null_address(item.recipient):
                raise ZeroRecipient(
                    "Consideration recipient cannot be the zero address",
                    {"index": index},
                )
