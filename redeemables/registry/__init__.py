"""
Redeemables Campaign Registry

Campaign creation, update and lookup. The store is the only mutable
campaign state; the registry owns configuration rules.
"""

from redeemables.registry.registry import NEW_CAMPAIGN, CampaignRegistry
from redeemables.registry.store import CampaignStore

__all__ = ["NEW_CAMPAIGN", "CampaignRegistry", "CampaignStore"]
